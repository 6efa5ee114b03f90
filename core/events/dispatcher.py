import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple, Union

from core.events.contracts import QueuePreferences, ShouldQueue
from core.exceptions import DispatcherError
from core.queue.queue_manager import QueueManager
from core.queue.queued_listener_job import QueuedListenerJob
from core.type_registry import TypeRegistry

logger = logging.getLogger("Herald.EventDispatcher")

ListenerDescriptor = Union[type, Tuple[type, str], Callable[..., Any]]


class EventDispatcher:
    """
    Keeps the ordered listeners of every event type and runs them.

    Each listener either runs inline, awaited in registration order, or,
    when it implements ShouldQueue, is turned into a QueuedListenerJob and
    pushed onto its preferred queue. An exception raised by an inline
    listener propagates to the caller and the remaining listeners are
    not run.
    """

    def __init__(self, types: TypeRegistry, queue: Optional[QueueManager] = None):
        self.types = types
        self.queue = queue
        self._listeners: Dict[type, List[ListenerDescriptor]] = {}

    def listen(
        self,
        event_type: type,
        listener: ListenerDescriptor,
        factory: Optional[Callable[[], Any]] = None,
    ) -> None:
        """
        Register a listener for an event type.

        Args:
            event_type: Event class
            listener: Listener class, (listener class, "method") tuple or a callable
            factory: Zero-argument callable building the listener class

        Registering the same listener twice makes it run twice.
        """
        self.types.register(event_type)

        if isinstance(listener, tuple):
            listener_class, method = listener
            self.types.register(listener_class, factory=factory)
            logger.debug(f"Listener {listener_class.__name__}.{method} registered for {event_type.__name__}")
        elif isinstance(listener, type):
            self.types.register(listener, factory=factory)
            logger.debug(f"Listener {listener.__name__} registered for {event_type.__name__}")
        elif not callable(listener):
            raise DispatcherError(f"Listener for {event_type.__name__} is not callable: {listener!r}")

        self._listeners.setdefault(event_type, []).append(listener)

    def get_listeners(self, event_type: type) -> List[ListenerDescriptor]:
        return list(self._listeners.get(event_type, []))

    def has_listeners(self, event_type: type) -> bool:
        return bool(self._listeners.get(event_type))

    async def dispatch(self, event: Any) -> None:
        """
        Run or queue every listener of the event's type.

        Raises:
            DispatcherError: If a listener wants queuing but no queue is configured
        """
        event_type = type(event)
        listeners = self._listeners.get(event_type, [])
        if not listeners:
            logger.debug(f"No listeners for {event_type.__name__}")
            return

        for descriptor in listeners:
            if isinstance(descriptor, tuple):
                listener_class, method = descriptor
                instance = self._make(listener_class)
            elif isinstance(descriptor, type):
                instance = self._make(descriptor)
                method = "handle"
            else:
                await _call(descriptor, event)
                continue

            if isinstance(instance, ShouldQueue):
                await self._queue_listener(type(instance), instance, event)
                continue

            await _call(getattr(instance, method), event)

    def _make(self, listener_class: type) -> Any:
        return self.types.make(self.types.identifier_for(listener_class))

    async def _queue_listener(self, listener_class: type, instance: Any, event: Any) -> None:
        if self.queue is None:
            raise DispatcherError(
                f"{listener_class.__name__} should be queued but no queue is configured"
            )

        if isinstance(instance, QueuePreferences):
            options = instance.queue_options()
        else:
            options = {
                "queue": getattr(instance, "queue", None) or "default",
                "delay": getattr(instance, "delay", 0),
                "backoff": getattr(instance, "backoff", 0),
                "max_attempts": getattr(instance, "max_attempts", 0),
            }

        job = QueuedListenerJob.from_listener(
            self.types.identifier_for(listener_class),
            event,
            self.types.identifier_for(type(event)),
            options,
        )
        await self.queue.push(job.queue, job.to_payload(), job.delay)
        logger.info(
            f"Listener {listener_class.__name__} queued on '{job.queue}' "
            f"for {type(event).__name__} (delay: {job.delay}s)"
        )


async def _call(listener: Callable[..., Any], event: Any) -> None:
    result = listener(event)
    if inspect.isawaitable(result):
        await result
