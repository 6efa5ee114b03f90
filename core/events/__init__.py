"""
Event system for Herald - listeners run inline or on the queue.
"""

from core.events.contracts import QueuePreferences, ShouldQueue
from core.events.dispatcher import EventDispatcher
from core.events.event_manager import EventManager

__all__ = [
    "EventDispatcher",
    "EventManager",
    "QueuePreferences",
    "ShouldQueue",
]
