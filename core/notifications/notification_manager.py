import logging
from typing import Any, Dict, List, Optional

from core.notifications.channel_registry import ChannelRegistry
from core.notifications.exceptions import NotificationDeliveryError
from core.notifications.notification import Notification

logger = logging.getLogger("Herald.NotificationManager")


class NotificationManager:
    """
    Delivers notifications through the registered channels.

    Every channel the notification asks for is attempted even when an
    earlier one fails; failures are raised together afterwards as a
    NotificationDeliveryError.
    """

    def __init__(self, channels: ChannelRegistry, providers: Optional[List] = None):
        self.channels = channels
        self.providers = list(providers or [])
        self.booted = False

    def boot(self) -> None:
        """Let every provider register its channels. Later calls do nothing."""
        if self.booted:
            return

        for provider in self.providers:
            provider.boot_notifications(self.channels)

        self.booted = True
        logger.info(f"Notification channels registered: {', '.join(self.channels.all()) or 'none'}")

    @staticmethod
    def build_payload(notification: Notification, channel: str, notifiable: Any, meta: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        The payload for one channel.

        Dict results keep their keys and carry meta under "_meta"; anything
        else becomes {"message": value} merged with meta.
        """
        result = notification.payload_for(channel, notifiable)
        if isinstance(result, dict):
            payload = dict(result)
            if meta:
                payload["_meta"] = {**meta, **payload.get("_meta", {})}
            return payload

        return {"message": result, **(meta or {})}

    async def send(
        self,
        notifiable: Any,
        notification: Notification,
        channels: Optional[List[str]] = None,
        meta: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Raises:
            NotificationDeliveryError: After all channels were attempted, if any failed
        """
        names = channels if channels is not None else notification.via(notifiable)
        failures: Dict[str, Exception] = {}

        for name in names:
            try:
                channel = self.channels.resolve(name)
                payload = self.build_payload(notification, name, notifiable, meta)
                await channel.send(notifiable, notification, payload)
                logger.debug(f"{notification.__class__.__name__} delivered via {name}")
            except Exception as e:
                logger.error(f"{notification.__class__.__name__} failed on channel '{name}': {e}")
                failures[name] = e

        if failures:
            raise NotificationDeliveryError(failures, notification.type_name())
