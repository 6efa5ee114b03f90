from app.listeners.send_welcome_email_listener import SendWelcomeEmailListener
from core.events.user_registered import UserRegistered
from core.providers.event_service_provider import EventServiceProvider


class AppEventServiceProvider(EventServiceProvider):
    listen = {
        UserRegistered: [SendWelcomeEmailListener],
    }

    def factories(self):
        return {
            SendWelcomeEmailListener: lambda: SendWelcomeEmailListener(self.app.notifications),
        }


provider = AppEventServiceProvider
