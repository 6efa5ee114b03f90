from core.listeners.send_account_deactivated_email import SendAccountDeactivatedEmail
from core.listeners.send_password_reset_email import SendPasswordResetEmail
from core.listeners.send_registration_email import SendRegistrationEmail

__all__ = [
    "SendRegistrationEmail",
    "SendPasswordResetEmail",
    "SendAccountDeactivatedEmail",
]
