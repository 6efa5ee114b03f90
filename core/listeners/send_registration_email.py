import logging

from core.events.contracts import QueuePreferences, ShouldQueue
from core.events.user_registered import UserRegistered
from core.mail.mailer_service import MailerService
from core.mail.mailers import WelcomeMailer

logger = logging.getLogger("Herald.Listeners")


class SendRegistrationEmail(ShouldQueue, QueuePreferences):
    """Sends the welcome email, on the mail queue, when the registration asked for one."""

    queue = "mail"

    def __init__(self, mailer: MailerService):
        self.mailer = mailer

    async def handle(self, event: UserRegistered) -> None:
        if not event.should_send_email:
            return
        if event.user is None:
            logger.warning("Registered user no longer exists, skipping welcome email")
            return
        await WelcomeMailer.send_to(event.user, self.mailer)
        logger.info(f"Registration email sent to {event.user.username} via {event.user.email}")
