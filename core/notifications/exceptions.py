from typing import Dict, Optional


class NotificationError(RuntimeError):
    """Base class for notification delivery errors."""


class ChannelError(NotificationError):
    """An error raised by or about one channel. The message is prefixed with the channel name."""

    def __init__(self, channel: str, message: str = ""):
        self.channel = channel
        super().__init__(f"[{channel}] {message}")


class UnregisteredChannelError(ChannelError):
    def __init__(self, channel: str):
        super().__init__(channel, f"Unsupported notification channel: {channel}")


class ChannelSendFailedError(ChannelError):
    """Delivery through a channel failed; the cause is chained as __cause__."""

    def __init__(
        self,
        channel: str,
        notification_type: str,
        notifiable_id=None,
        message: str = "Send failed",
    ):
        self.notification_type = notification_type
        self.notifiable_id = notifiable_id
        super().__init__(
            channel,
            f"{message} (notification={notification_type}, notifiable={notifiable_id})",
        )


class InvalidPayloadError(NotificationError, ValueError):
    """A channel payload has the wrong shape."""


class NotifiableRoutingError(NotificationError):
    """The notifiable has no address for a channel."""


class NotificationDeliveryError(NotificationError):
    """
    One or more channels failed during a multi-channel send.

    Every requested channel was attempted; failures maps channel name to
    the exception it raised.
    """

    def __init__(self, failures: Dict[str, Exception], notification_type: Optional[str] = None):
        self.failures = dict(failures)
        self.notification_type = notification_type
        summary = ", ".join(f"{name}: {error}" for name, error in self.failures.items())
        super().__init__(f"Notification delivery failed on {len(self.failures)} channel(s): {summary}")
