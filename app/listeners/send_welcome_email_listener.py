import logging

from app.models.user import User
from app.notifications.user_registered import UserRegistered as UserRegisteredNotification
from core.events.contracts import QueuePreferences, ShouldQueue
from core.events.user_registered import UserRegistered
from core.notifications.notification_manager import NotificationManager

logger = logging.getLogger("Herald.SendWelcomeEmailListener")


class SendWelcomeEmailListener(ShouldQueue, QueuePreferences):
    """Notifies the administrators about a new user, on the mail queue."""

    queue = "mail"
    delay = 60
    backoff = [10, 30, 60]
    max_attempts = 5

    def __init__(self, notifier: NotificationManager):
        self.notifier = notifier

    async def handle(self, event: UserRegistered) -> None:
        if event.user is None:
            logger.warning("Registered user no longer exists, nothing to notify")
            return

        admins = await User.admins()
        for admin in admins:
            await admin.notify(UserRegisteredNotification(event.user), notifier=self.notifier)

        logger.info(f"Notified {len(admins)} administrators about {event.user.username}")
