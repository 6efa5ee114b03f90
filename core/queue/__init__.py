"""
Queue system for Herald - durable background execution of jobs and queued listeners.
"""

from core.queue.queue_manager import QueueManager
from core.queue.queue_worker import QueueWorker
from core.queue.queue_driver import QueueDriver
from core.queue.redis_queue import RedisQueue
from core.queue.database_queue import DatabaseQueue
from core.queue.queued_listener_job import QueuedListenerJob

__all__ = [
    "QueueManager",
    "QueueWorker",
    "QueueDriver",
    "RedisQueue",
    "DatabaseQueue",
    "QueuedListenerJob",
]
