import json
import logging
import os
from datetime import timedelta
from typing import Any, Dict, Optional

from sqlalchemy import select, update, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession

from core.queue.queue_driver import QueueDriver
from core.model import Model, utcnow
from app.models.queue_job import QueueJob
from app.models.queue_failed_job import QueueFailedJob

logger = logging.getLogger("Herald.DatabaseQueue")


class DatabaseQueue(QueueDriver):
    """
    Database-backed queue driver using SQLAlchemy.
    Workers poll the queue_jobs table; a job is handed to exactly one of
    them by reserving its row inside a transaction.
    """

    connection_name = "database"

    def __init__(self, retry_after: Optional[int] = None):
        """
        Initialize the database queue driver.

        Args:
            retry_after: Seconds after which a reservation is considered stale and
                the job may be reserved again. 0 disables expiry.
        """
        if retry_after is None:
            retry_after = int(os.getenv("QUEUE_RETRY_AFTER", "0"))
        self.retry_after = retry_after

    async def _session(self) -> AsyncSession:
        if not Model._is_enabled:
            logger.error("Database queue used while the database is disabled")
            raise RuntimeError("Database is disabled. Enable it to use DatabaseQueue.")
        return await Model.get_session()

    async def push(
        self,
        queue: str,
        payload: Dict[str, Any],
        delay: int = 0,
    ) -> int:
        """Push a new job onto the queue."""
        session = await self._session()
        try:
            now = utcnow()
            job = QueueJob(
                queue=queue,
                payload=json.dumps(payload),
                attempts=int(payload.get("attempts", 0)),
                available_at=now + timedelta(seconds=max(delay, 0)),
                created_at=now,
            )

            session.add(job)
            await session.commit()
            logger.debug(f"Job {job.id} pushed to queue '{queue}' with delay {delay}s")
            return job.id

        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to push job to queue: {str(e)}")
            raise
        finally:
            await session.close()

    async def pop(self, queue: str = "default") -> Optional[dict]:
        """Reserve the next available job from the queue."""
        session = await self._session()
        try:
            now = utcnow()
            reservable = QueueJob.reserved_at.is_(None)
            if self.retry_after > 0:
                reservable = or_(
                    reservable,
                    QueueJob.reserved_at <= now - timedelta(seconds=self.retry_after),
                )

            # FOR UPDATE SKIP LOCKED keeps concurrent pollers off the same row
            # on backends that support it
            stmt = (
                select(QueueJob)
                .where(
                    QueueJob.queue == queue,
                    reservable,
                    QueueJob.available_at <= now,
                )
                .order_by(QueueJob.id)
                .limit(1)
                .with_for_update(skip_locked=True)
            )

            result = await session.execute(stmt)
            job = result.scalars().first()

            if not job:
                await session.commit()
                return None

            # Only reserve if nobody reserved the row since we read it
            seen = job.reserved_at
            claim = (
                update(QueueJob)
                .where(
                    QueueJob.id == job.id,
                    QueueJob.reserved_at.is_(None) if seen is None else QueueJob.reserved_at == seen,
                )
                .values(reserved_at=now, attempts=QueueJob.attempts + 1)
                .execution_options(synchronize_session=False)
            )
            claimed = await session.execute(claim)
            await session.commit()

            if claimed.rowcount != 1:
                logger.debug(f"Job {job.id} was reserved by another worker")
                return None

            attempts = job.attempts + 1
            logger.debug(f"Job {job.id} popped from queue '{queue}' (attempt {attempts})")

            return {
                "id": job.id,
                "queue": queue,
                "payload": json.loads(job.payload),
                "attempts": attempts,
            }

        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to pop job from queue: {str(e)}")
            raise
        finally:
            await session.close()

    async def release(
        self,
        queue: str,
        payload: Dict[str, Any],
        delay: int = 0,
    ) -> int:
        """Insert a copy of the job that becomes available after the delay."""
        job_id = await self.push(queue, payload, delay)
        logger.debug(f"Job released back to queue '{queue}' as {job_id} with delay {delay}s")
        return job_id

    async def delete(self, job_id: int) -> None:
        """Delete a job from the queue."""
        session = await self._session()
        try:
            await session.execute(delete(QueueJob).where(QueueJob.id == int(job_id)))
            await session.commit()
            logger.debug(f"Job {job_id} deleted")

        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to delete job: {str(e)}")
            raise
        finally:
            await session.close()

    async def failed(
        self,
        connection: str,
        queue: str,
        payload: str,
        exception: str,
    ) -> None:
        """Store a failed job."""
        session = await self._session()
        try:
            failed_job = QueueFailedJob(
                connection=connection,
                queue=queue,
                payload=payload,
                exception=exception,
                failed_at=utcnow(),
            )

            session.add(failed_job)
            await session.commit()
            logger.info(f"Failed job stored for queue '{queue}'")

        except Exception as e:
            await session.rollback()
            logger.error(f"Failed to store failed job: {str(e)}")
            raise
        finally:
            await session.close()

    async def size(self, queue: str = "default") -> int:
        """Get the number of unreserved jobs in the queue."""
        session = await self._session()
        try:
            stmt = select(func.count(QueueJob.id)).where(
                QueueJob.queue == queue,
                QueueJob.reserved_at.is_(None),
            )
            result = await session.execute(stmt)
            return int(result.scalar_one())
        finally:
            await session.close()
