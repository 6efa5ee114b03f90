import contextvars
from contextlib import contextmanager
from typing import Any, Dict, Iterator, List, Optional

from app.models.notification import DatabaseNotification
from core.notifications.exceptions import NotificationError
from core.type_registry import type_identifier

_current_notifier: contextvars.ContextVar = contextvars.ContextVar("herald_notifier", default=None)


@contextmanager
def bind_notifier(manager) -> Iterator[None]:
    """
    Make a NotificationManager the default for notify() in this context.

    Example:
        with bind_notifier(app.notifications):
            await user.notify(UserRegisteredNotification(new_user))
    """
    token = _current_notifier.set(manager)
    try:
        yield
    finally:
        _current_notifier.reset(token)


def current_notifier():
    return _current_notifier.get()


class Notifiable:
    """
    Mixin for entities that receive notifications.

    The entity needs an ``id``; stored notifications are keyed by the
    entity's type identifier and id.
    """

    async def notify(
        self,
        notification,
        channels: Optional[List[str]] = None,
        meta: Optional[Dict[str, Any]] = None,
        notifier=None,
    ) -> None:
        """
        Deliver a notification on every channel it asks for.

        Args:
            notification: The Notification to deliver
            channels: Channel names overriding notification.via()
            meta: Extra data attached to every channel payload
            notifier: NotificationManager to use instead of the bound one

        Raises:
            NotificationError: If no manager is passed or bound
            NotificationDeliveryError: If one or more channels failed
        """
        manager = notifier or current_notifier()
        if manager is None:
            raise NotificationError("No notification manager bound; pass notifier= or use bind_notifier()")
        await manager.send(self, notification, channels=channels, meta=meta)

    async def notifications(self) -> List[Any]:
        """Unread stored notifications, newest first."""
        return await DatabaseNotification.unread_for(type_identifier(type(self)), self.id)

    async def mark_notifications_as_read(self, notification_id: Optional[str] = None) -> int:
        return await DatabaseNotification.mark_as_read(type_identifier(type(self)), self.id, notification_id)
