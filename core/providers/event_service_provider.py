import logging
from typing import Any, Callable, Dict, List

from core.events.account_deactivated import AccountDeactivated
from core.events.dispatcher import EventDispatcher
from core.events.user_password_reset_requested import UserPasswordResetRequested
from core.events.user_registered import UserRegistered
from core.listeners.send_account_deactivated_email import SendAccountDeactivatedEmail
from core.listeners.send_password_reset_email import SendPasswordResetEmail
from core.listeners.send_registration_email import SendRegistrationEmail
from core.providers.service_provider import ServiceProvider

logger = logging.getLogger("Herald.EventServiceProvider")


class EventServiceProvider(ServiceProvider):
    """
    Registers the listeners declared in ``listen``.

    Example:
        class AppEventServiceProvider(EventServiceProvider):
            listen = {
                OrderShipped: [SendShipmentNotification],
            }

            def factories(self):
                return {SendShipmentNotification: lambda: SendShipmentNotification(self.app.mailer)}
    """

    listen: Dict[type, List[Any]] = {}

    def factories(self) -> Dict[type, Callable[[], Any]]:
        """Constructors for listener classes that need dependencies."""
        return {}

    def boot(self, dispatcher: EventDispatcher) -> None:
        factories = self.factories()
        count = 0
        for event_type, listeners in self.listen.items():
            for listener in listeners:
                listener_class = listener[0] if isinstance(listener, tuple) else listener
                dispatcher.listen(event_type, listener, factories.get(listener_class))
                count += 1
        logger.debug(f"{self.__class__.__name__} registered {count} listeners")


class CoreEventServiceProvider(EventServiceProvider):
    """Listeners for the events the framework raises itself."""

    listen = {
        UserRegistered: [SendRegistrationEmail],
        UserPasswordResetRequested: [SendPasswordResetEmail],
        AccountDeactivated: [SendAccountDeactivatedEmail],
    }

    def factories(self) -> Dict[type, Callable[[], Any]]:
        return {
            SendRegistrationEmail: lambda: SendRegistrationEmail(self.app.mailer),
            SendPasswordResetEmail: lambda: SendPasswordResetEmail(self.app.mailer),
            SendAccountDeactivatedEmail: lambda: SendAccountDeactivatedEmail(self.app.mailer),
        }
