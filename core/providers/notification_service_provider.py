from core.notifications.channel_registry import ChannelRegistry
from core.notifications.channels.database_channel import DatabaseChannel
from core.notifications.channels.log_channel import LogChannel
from core.notifications.channels.mail_channel import MailChannel
from core.providers.service_provider import ServiceProvider


class NotificationServiceProvider(ServiceProvider):
    """Registers the framework's database, mail and log channels."""

    def boot_notifications(self, channels: ChannelRegistry) -> None:
        channels.register(DatabaseChannel.name, DatabaseChannel)
        channels.register(MailChannel.name, lambda: MailChannel(self.app.mailer, self.app.types))
        channels.register(LogChannel.name, LogChannel)
