import logging
from typing import List, Optional

from core.events.dispatcher import EventDispatcher
from core.exceptions import NotBootedError
from core.queue.queue_manager import QueueManager
from core.queue.queued_listener_job import QueuedListenerJob
from core.type_registry import TypeRegistry

logger = logging.getLogger("Herald.EventManager")


class EventManager:
    """
    Owns the application's event dispatcher.

    boot() builds the dispatcher once and lets every provider register its
    listeners into it, framework provider first.
    """

    def __init__(
        self,
        types: TypeRegistry,
        queue: Optional[QueueManager] = None,
        providers: Optional[List] = None,
    ):
        self.types = types
        self.queue = queue
        self.providers = list(providers or [])
        self._dispatcher: Optional[EventDispatcher] = None

    @property
    def booted(self) -> bool:
        return self._dispatcher is not None

    def boot(self) -> EventDispatcher:
        """Build the dispatcher and register listeners. Later calls do nothing."""
        if self._dispatcher is not None:
            return self._dispatcher

        self.types.register(QueuedListenerJob)
        dispatcher = EventDispatcher(self.types, self.queue)

        for provider in self.providers:
            provider.boot(dispatcher)
            logger.debug(f"Events registered by {provider.__class__.__name__}")

        self._dispatcher = dispatcher
        logger.info(f"Event manager booted with {len(self.providers)} providers")
        return dispatcher

    def dispatcher(self) -> EventDispatcher:
        """
        Raises:
            NotBootedError: If boot() has not been called
        """
        if self._dispatcher is None:
            raise NotBootedError("EventManager.boot() must be called before using the dispatcher")
        return self._dispatcher

    async def dispatch(self, event) -> None:
        await self.dispatcher().dispatch(event)
