"""
Notification system for Herald - multi-channel delivery (database, mail, log).
"""

from core.notifications.channel import Channel
from core.notifications.channel_registry import ChannelRegistry
from core.notifications.notifiable import Notifiable, bind_notifier
from core.notifications.notification import Notification
from core.notifications.notification_manager import NotificationManager

__all__ = [
    "Channel",
    "ChannelRegistry",
    "Notifiable",
    "Notification",
    "NotificationManager",
    "bind_notifier",
]
