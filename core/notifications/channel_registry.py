import logging
from typing import Callable, Dict, List, Union

from core.notifications.channel import Channel
from core.notifications.exceptions import UnregisteredChannelError

logger = logging.getLogger("Herald.ChannelRegistry")

ChannelFactory = Union[type, Callable[[], Channel]]


class ChannelRegistry:
    """
    Maps channel names to channel classes or factories.

    Names are case-insensitive. Registering a name again replaces the
    previous binding, which is how applications override framework channels.
    """

    def __init__(self):
        self._channels: Dict[str, ChannelFactory] = {}

    def register(self, name: str, channel: ChannelFactory) -> None:
        key = name.lower()
        if key in self._channels:
            logger.debug(f"Channel '{key}' overridden")
        self._channels[key] = channel

    def resolve(self, name: str) -> Channel:
        """
        Build a live channel for the name.

        Raises:
            UnregisteredChannelError: If nothing is registered under the name
        """
        try:
            factory = self._channels[name.lower()]
        except KeyError:
            raise UnregisteredChannelError(name) from None
        return factory()

    def has(self, name: str) -> bool:
        return name.lower() in self._channels

    def all(self) -> List[str]:
        return list(self._channels)
