from core.notifications.channels.database_channel import DatabaseChannel
from core.notifications.channels.log_channel import LogChannel
from core.notifications.channels.mail_channel import MailChannel

__all__ = ["DatabaseChannel", "LogChannel", "MailChannel"]
