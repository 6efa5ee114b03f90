import logging
import os
from typing import Any, Dict, List, Optional

from core.exceptions import QueueConfigurationError
from core.job import Job
from core.model import Model
from core.queue.queue_driver import JobId, QueueDriver
from core.queue.database_queue import DatabaseQueue
from core.queue.redis_queue import RedisQueue
from core.redis_manager import RedisManager

logger = logging.getLogger("Herald.QueueManager")

SUPPORTED_CONNECTIONS = ("database", "redis")


class QueueManager:
    """
    Single entry point to the configured queue backend.

    The driver is chosen once, at construction; a bad configuration fails
    here instead of on the first push.
    """

    def __init__(
        self,
        connection: Optional[str] = None,
        redis_manager: Optional[RedisManager] = None,
        driver: Optional[QueueDriver] = None,
    ):
        """
        Initialize the queue manager.

        Args:
            connection: 'database' or 'redis'. Defaults to QUEUE_CONNECTION
            redis_manager: RedisManager used by the redis connection
            driver: Ready-made driver; skips connection selection

        Raises:
            QueueConfigurationError: If the connection is unsupported or its backend is disabled
        """
        if driver is not None:
            self.driver = driver
            self.connection = driver.connection_name
        else:
            self.connection = (connection or os.getenv("QUEUE_CONNECTION", "database")).lower()
            self.driver = self._make_driver(self.connection, redis_manager)

        logger.info(f"QueueManager initialized with connection: {self.connection}")

    @staticmethod
    def _make_driver(connection: str, redis_manager: Optional[RedisManager]) -> QueueDriver:
        if connection == "database":
            if not Model._is_enabled:
                raise QueueConfigurationError(
                    "Cannot use database queue - the database is disabled. "
                    "Enable it or configure Redis as queue connection."
                )
            return DatabaseQueue()

        if connection == "redis":
            if redis_manager is None or not redis_manager.enabled:
                raise QueueConfigurationError(
                    "Cannot use redis queue - Redis is disabled. Set ENABLE_REDIS=true."
                )
            return RedisQueue(redis_manager)

        raise QueueConfigurationError(
            f"Unsupported queue connection: {connection} "
            f"(expected one of: {', '.join(SUPPORTED_CONNECTIONS)})"
        )

    async def push(self, queue: str, payload: Dict[str, Any], delay: int = 0) -> JobId:
        """Push a raw payload onto a queue."""
        job_id = await self.driver.push(queue, payload, delay)
        logger.debug(f"Payload pushed to queue '{queue}' with delay {delay}s")
        return job_id

    async def pop(self, queue: str = "default") -> Optional[dict]:
        return await self.driver.pop(queue)

    async def release(self, queue: str, payload: Dict[str, Any], delay: int = 0) -> JobId:
        return await self.driver.release(queue, payload, delay)

    async def delete(self, job_id: JobId) -> None:
        await self.driver.delete(job_id)

    async def failed(self, queue: str, payload: str, exception: str) -> None:
        await self.driver.failed(self.connection, queue, payload, exception)

    async def size(self, queue: str = "default") -> int:
        return await self.driver.size(queue)

    async def dispatch(self, job: Job, queue: Optional[str] = None) -> JobId:
        """
        Serialize a job and push it, honoring its delay.

        Args:
            job: Job instance to push
            queue: Queue name (uses job's queue if not specified)

        Example:
            await queues.dispatch(SendReportJob(report_id=7))
        """
        queue = queue or job.queue
        job_id = await self.driver.push(queue, job.to_payload(), job.delay)

        logger.info(f"Job {job.__class__.__name__} dispatched to queue '{queue}'")
        return job_id

    async def bulk(self, jobs: List[Job], queue: Optional[str] = None) -> None:
        """Dispatch several jobs."""
        for job in jobs:
            await self.dispatch(job, queue)

        logger.info(f"Bulk dispatched {len(jobs)} jobs")
