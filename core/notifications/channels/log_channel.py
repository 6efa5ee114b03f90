import json
import logging
from typing import Any

from core.notifications.channel import Channel
from core.type_registry import type_identifier

logger = logging.getLogger("Herald.LogChannel")


class LogChannel(Channel):
    """Writes the notification to the application log."""

    name = "log"

    async def send(self, notifiable: Any, notification: Any, payload: Any) -> None:
        if isinstance(payload, dict) and "message" in payload:
            message = payload["message"]
        else:
            message = payload

        entry = {
            "message": message,
            "notification": type_identifier(type(notification)),
            "notifiable": type_identifier(type(notifiable)),
        }
        logger.info(json.dumps(entry, default=str))
