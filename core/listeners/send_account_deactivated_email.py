import logging

from core.events.account_deactivated import AccountDeactivated
from core.mail.mailer_service import MailerService
from core.mail.mailers import AccountDeactivatedMailer

logger = logging.getLogger("Herald.Listeners")


class SendAccountDeactivatedEmail:
    def __init__(self, mailer: MailerService):
        self.mailer = mailer

    async def handle(self, event: AccountDeactivated) -> None:
        await AccountDeactivatedMailer.send_to(event.user, self.mailer)
        logger.info(f"Account deactivated email sent to {event.user.username} via {event.user.email}")
