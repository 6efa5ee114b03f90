import logging

from core.events.user_password_reset_requested import UserPasswordResetRequested
from core.mail.mailer_service import MailerService
from core.mail.mailers import PasswordResetMailer

logger = logging.getLogger("Herald.Listeners")


class SendPasswordResetEmail:
    def __init__(self, mailer: MailerService):
        self.mailer = mailer

    async def handle(self, event: UserPasswordResetRequested) -> None:
        await PasswordResetMailer.send_to(event.user, self.mailer)
        logger.info(f"Reset password email sent to {event.user.username} via {event.user.email}")
