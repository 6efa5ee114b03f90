from abc import ABC, abstractmethod
from typing import Any, Dict, Optional, Union

JobId = Union[int, str]


class QueueDriver(ABC):
    """
    Abstract base class for queue drivers.
    Implementations can use Redis, Database, or any other backend.

    Drivers never swallow backend errors: a failed connection or query
    propagates to the caller.
    """

    connection_name: str = "unknown"

    @abstractmethod
    async def push(
        self,
        queue: str,
        payload: Dict[str, Any],
        delay: int = 0,
    ) -> JobId:
        """
        Push a new job onto the queue.

        Args:
            queue: Queue name
            payload: Job payload as produced by Job.to_payload()
            delay: Delay in seconds before the job becomes available

        Returns:
            Identifier of the stored job
        """
        pass

    @abstractmethod
    async def pop(self, queue: str = "default") -> Optional[dict]:
        """
        Reserve the next available job from the queue.

        Args:
            queue: Queue name

        Returns:
            Dictionary with job data: {id, queue, payload, attempts} or None if
            no jobs are available. ``attempts`` is the attempt number of this
            reservation.
        """
        pass

    @abstractmethod
    async def release(
        self,
        queue: str,
        payload: Dict[str, Any],
        delay: int = 0,
    ) -> JobId:
        """
        Put a copy of a job back onto the queue (for retry).

        The reserved original is left in place; the caller deletes it once
        the release succeeded.

        Args:
            queue: Queue name
            payload: Job payload to requeue
            delay: Delay in seconds before the copy becomes available

        Returns:
            Identifier of the new job
        """
        pass

    @abstractmethod
    async def delete(self, job_id: JobId) -> None:
        """
        Delete a job from the queue.

        Args:
            job_id: Job identifier returned by push(), release() or pop()
        """
        pass

    @abstractmethod
    async def failed(
        self,
        connection: str,
        queue: str,
        payload: str,
        exception: str,
    ) -> None:
        """
        Store a failed job.

        Args:
            connection: Connection name (e.g., 'redis', 'database')
            queue: Queue name
            payload: Serialized job data
            exception: Exception message
        """
        pass

    @abstractmethod
    async def size(self, queue: str = "default") -> int:
        """
        Get the size of the queue.

        Args:
            queue: Queue name

        Returns:
            Number of jobs waiting in the queue
        """
        pass
