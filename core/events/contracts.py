from typing import Any, Dict, List, Optional, Union


class ShouldQueue:
    """
    Marker base class: the listener runs on a queue worker instead of
    during dispatch.

    Example:
        class SendWelcomeEmail(ShouldQueue):
            async def handle(self, event): ...
    """


class QueuePreferences:
    """
    How a queued listener wants to be queued.

    Override the class attributes; the dispatcher reads them through
    queue_options().
    """

    # Queue name, None means "default"
    queue: Optional[str] = None

    # Seconds before the job becomes available
    delay: int = 0

    # Seconds before a retry, or one value per retry (e.g. [10, 30, 60])
    backoff: Union[int, List[int]] = 0

    # Attempts before the job is marked failed, 0 means the configured default
    max_attempts: int = 0

    def via_queue(self) -> Optional[str]:
        return self.queue

    def queue_options(self) -> Dict[str, Any]:
        return {
            "queue": self.via_queue() or "default",
            "delay": self.delay,
            "backoff": self.backoff,
            "max_attempts": self.max_attempts,
        }
