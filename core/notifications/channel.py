from abc import ABC, abstractmethod
from typing import Any


class Channel(ABC):
    """A notification delivery backend."""

    # Name the channel is registered under
    name: str = ""

    @abstractmethod
    async def send(self, notifiable: Any, notification: Any, payload: Any) -> None:
        """
        Deliver one notification to one notifiable.

        Args:
            notifiable: The recipient entity
            notification: The Notification being delivered
            payload: The channel-specific payload built by the notification

        Raises:
            ChannelError: When delivery fails
        """
        pass
