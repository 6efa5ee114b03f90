import logging
import os
from abc import ABC, abstractmethod
from datetime import timedelta
from typing import Any, Dict, List, Optional, Union

from core.exceptions import JobRehydrationError, UnknownTypeError
from core.model import utcnow
from core.type_registry import TypeRegistry, type_identifier

logger = logging.getLogger("Herald.Job")

Backoff = Union[int, List[int]]

# Attributes that describe how a job is queued rather than what it does
_META_ATTRIBUTES = ("job_id", "attempts", "queue", "delay", "backoff", "max_attempts", "timeout")


def default_max_attempts() -> int:
    return int(os.getenv("QUEUE_MAX_ATTEMPTS", "3"))


class Job(ABC):
    """
    Base Job class that all background jobs should extend.

    A job turns itself into a JSON-safe payload for the queue and is rebuilt
    from it by the worker through a TypeRegistry.
    """

    # The name of the queue the job should be sent to
    queue: str = "default"

    # Seconds before the job becomes available after being pushed
    delay: int = 0

    # Seconds to wait before a retry; a list gives one value per retry
    backoff: Backoff = 0

    # Maximum number of attempts, 0 means the configured default
    max_attempts: int = 0

    # Number of seconds the job can run before timing out
    timeout: int = 60

    def __init__(self):
        """Initialize the job."""
        self.job_id = None
        self.attempts: int = 0
        self._types: Optional[TypeRegistry] = None

    @abstractmethod
    async def handle(self) -> None:
        """
        Execute the job.
        This method must be implemented by all job classes.
        """
        pass

    async def failed(self, exception: Exception) -> None:
        """
        Handle a job failure.
        Override this method to perform cleanup when a job fails permanently.

        Args:
            exception: The exception that caused the job to fail
        """
        logger.error(
            f"Job {self.__class__.__name__} failed permanently: {str(exception)}"
        )

    def resolve_max_attempts(self) -> int:
        return self.max_attempts or default_max_attempts()

    def backoff_for(self, attempt: int) -> int:
        """
        Delay before retrying after the given (1-based) failed attempt.

        A list backoff is indexed per attempt and repeats its last value.
        """
        if isinstance(self.backoff, (list, tuple)):
            if not self.backoff:
                return 0
            index = min(max(attempt, 1), len(self.backoff)) - 1
            return int(self.backoff[index])
        return int(self.backoff or 0)

    def get_data(self) -> Dict[str, Any]:
        """
        Get the serializable data for the job.
        Override this method to include custom data that needs to be serialized.

        Returns:
            Dictionary of data to be serialized
        """
        return {
            key: value
            for key, value in self.__dict__.items()
            if not key.startswith("_") and key not in _META_ATTRIBUTES
        }

    @classmethod
    def from_data(cls, data: Dict[str, Any]) -> "Job":
        """Build a job from get_data() output. Override for custom constructors."""
        job = cls()
        for key, value in data.items():
            setattr(job, key, value)
        return job

    def to_payload(self) -> Dict[str, Any]:
        """
        Build the payload stored by the queue driver.

        Returns:
            {"job", "data", "queue", "delay", "backoff", "available_at", "max_attempts"}
        """
        available_at = utcnow() + timedelta(seconds=max(self.delay, 0))
        return {
            "job": type_identifier(type(self)),
            "data": self.get_data(),
            "queue": self.queue,
            "delay": self.delay,
            "backoff": self.backoff,
            "available_at": available_at.strftime("%Y-%m-%d %H:%M:%S"),
            "max_attempts": self.max_attempts,
        }

    @staticmethod
    def unserialize(payload: Dict[str, Any], types: TypeRegistry) -> "Job":
        """
        Rebuild a job from its queue payload.

        Args:
            payload: Payload produced by to_payload()
            types: Registry the job class was registered in

        Raises:
            JobRehydrationError: If the job type is unknown to this process
        """
        identifier = payload.get("job")
        try:
            job_class = types.resolve(identifier)
        except UnknownTypeError:
            raise JobRehydrationError(str(identifier)) from None
        if not (isinstance(job_class, type) and issubclass(job_class, Job)):
            raise JobRehydrationError(str(identifier), f"'{identifier}' is not a Job type")

        try:
            job = job_class.from_data(payload.get("data") or {})
        except Exception as e:
            raise JobRehydrationError(
                str(identifier), f"Cannot rebuild '{identifier}' from its data: {e.__class__.__name__}: {e}"
            ) from e
        job._types = types
        job.queue = payload.get("queue", job.queue)
        job.delay = payload.get("delay", job.delay)
        job.backoff = payload.get("backoff", job.backoff)
        job.max_attempts = payload.get("max_attempts", job.max_attempts)
        job.attempts = payload.get("attempts", 0)
        return job

    def __repr__(self):
        return f"<{self.__class__.__name__}(attempts={self.attempts}, max_attempts={self.resolve_max_attempts()})>"
