from typing import Any


class ServiceProvider:
    """
    Base class for framework and application providers.

    register() runs when the application is built, boot() when the event
    dispatcher is built and boot_notifications() when the notification
    channels are set up. Override the hooks you need.
    """

    def __init__(self, app: Any):
        self.app = app

    def register(self) -> None:
        pass

    def boot(self, dispatcher) -> None:
        pass

    def boot_notifications(self, channels) -> None:
        pass
