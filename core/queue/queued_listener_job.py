import dataclasses
import inspect
import logging
from typing import Any, Dict, Optional

from core.exceptions import JobRehydrationError, UnknownTypeError
from core.job import Backoff, Job

logger = logging.getLogger("Herald.QueuedListenerJob")


def event_payload(event: Any) -> Dict[str, Any]:
    """The state of an event that survives the trip through the queue."""
    if hasattr(event, "to_payload"):
        return dict(event.to_payload())
    if dataclasses.is_dataclass(event):
        return {field.name: getattr(event, field.name) for field in dataclasses.fields(event)}
    return {}


class QueuedListenerJob(Job):
    """
    Runs one listener for one event on a queue worker.

    Built by the event dispatcher when a listener implements ShouldQueue.
    Only identifiers and the event payload are stored, so the worker must
    have the same listener and event types registered.
    """

    def __init__(
        self,
        listener: str = "",
        event: str = "",
        payload: Optional[Dict[str, Any]] = None,
        delay: int = 0,
        backoff: Backoff = 0,
        max_attempts: int = 0,
        queue: str = "default",
    ):
        super().__init__()
        self.listener = listener
        self.event = event
        self.payload = payload or {}
        self.delay = delay
        self.backoff = backoff
        self.max_attempts = max_attempts
        self.queue = queue

    @classmethod
    def from_listener(
        cls,
        listener: str,
        event: Any,
        event_type: str,
        options: Optional[Dict[str, Any]] = None,
    ) -> "QueuedListenerJob":
        """
        Build the job for a listener and an in-flight event.

        Args:
            listener: Registered identifier of the listener class
            event: The event being dispatched
            event_type: Registered identifier of the event class
            options: Queue preferences: queue, delay, backoff, max_attempts
        """
        options = options or {}
        return cls(
            listener=listener,
            event=event_type,
            payload=event_payload(event),
            delay=int(options.get("delay") or 0),
            backoff=options.get("backoff") or 0,
            max_attempts=int(options.get("max_attempts") or 0),
            queue=options.get("queue") or "default",
        )

    def get_data(self) -> Dict[str, Any]:
        return {
            "listener": self.listener,
            "event": self.event,
            "payload": self.payload,
            "delay": self.delay,
            "backoff": self.backoff,
            "max_attempts": self.max_attempts,
        }

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "QueuedListenerJob":
        return cls(
            listener=data.get("listener", ""),
            event=data.get("event", ""),
            payload=data.get("payload") or {},
            delay=data.get("delay", 0),
            backoff=data.get("backoff", 0),
            max_attempts=data.get("max_attempts", 0),
        )

    async def handle(self) -> None:
        """Rebuild the event and run the listener's handle() with it."""
        if self._types is None:
            raise JobRehydrationError(self.listener, "QueuedListenerJob has no type registry bound")

        event = await self.rehydrate_event()
        try:
            listener = self._types.make(self.listener)
        except UnknownTypeError:
            raise JobRehydrationError(self.listener) from None

        logger.info(f"Running queued listener {self.listener} for {self.event}")
        result = listener.handle(event)
        if inspect.isawaitable(result):
            await result

    async def rehydrate_event(self) -> Any:
        """
        Rebuild the event from its payload.

        Uses the event type's from_payload() when it has one (sync or async);
        otherwise builds a bare instance and assigns the payload keys.
        """
        try:
            event_class = self._types.resolve(self.event)
        except UnknownTypeError:
            raise JobRehydrationError(self.event) from None

        if hasattr(event_class, "from_payload"):
            event = event_class.from_payload(dict(self.payload))
            if inspect.isawaitable(event):
                event = await event
            return event

        event = event_class.__new__(event_class)
        for key, value in self.payload.items():
            setattr(event, key, value)
        return event
