from core.providers.event_service_provider import CoreEventServiceProvider, EventServiceProvider
from core.providers.notification_service_provider import NotificationServiceProvider
from core.providers.provider_registry import ProviderRegistry
from core.providers.service_provider import ServiceProvider

__all__ = [
    "ServiceProvider",
    "EventServiceProvider",
    "CoreEventServiceProvider",
    "NotificationServiceProvider",
    "ProviderRegistry",
]
