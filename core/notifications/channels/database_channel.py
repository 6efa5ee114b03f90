import json
import logging
import uuid
from typing import Any

from app.models.notification import DatabaseNotification
from core.model import Model, utcnow
from core.notifications.channel import Channel
from core.notifications.exceptions import (
    ChannelSendFailedError,
    InvalidPayloadError,
    NotifiableRoutingError,
)
from core.notifications.notification import Notification
from core.type_registry import type_identifier

logger = logging.getLogger("Herald.DatabaseChannel")


class DatabaseChannel(Channel):
    """Stores the notification in the notifications table."""

    name = "database"

    async def send(self, notifiable: Any, notification: Any, payload: Any) -> None:
        if not isinstance(notification, Notification):
            raise InvalidPayloadError("DatabaseChannel expects a Notification instance")
        if getattr(notifiable, "id", None) is None:
            raise NotifiableRoutingError("Notifiable must expose an 'id' for DatabaseChannel")
        if payload is not None and not isinstance(payload, dict):
            raise InvalidPayloadError("DatabaseChannel expects a dict or None payload")

        notification_type = notification.type_name()
        try:
            session = await Model.get_session()
            if session is None:
                raise RuntimeError("The database is disabled")
            try:
                record = DatabaseNotification(
                    id=str(uuid.uuid4()),
                    type=notification_type,
                    notifiable_type=type_identifier(type(notifiable)),
                    notifiable_id=str(notifiable.id),
                    data=json.dumps(payload, default=str),
                    read_at=None,
                    created_at=utcnow(),
                    updated_at=utcnow(),
                )
                session.add(record)
                await session.commit()
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()
        except Exception as e:
            logger.error(f"Failed to store {notification_type} for notifiable {notifiable.id}: {e}")
            raise ChannelSendFailedError(
                self.name,
                notification_type,
                notifiable.id,
                "Database persist failed",
            ) from e

        logger.debug(f"Stored {notification_type} as {record.id}")
