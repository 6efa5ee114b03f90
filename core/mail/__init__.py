from core.mail.abstract_mailer import AbstractMailer
from core.mail.mailer_service import MailerService
from core.mail.mailers import AccountDeactivatedMailer, PasswordResetMailer, WelcomeMailer

__all__ = [
    "AbstractMailer",
    "MailerService",
    "WelcomeMailer",
    "PasswordResetMailer",
    "AccountDeactivatedMailer",
]
