import json
import logging
import os
import time
import uuid
from typing import Any, Dict, Optional

from core.queue.queue_driver import QueueDriver
from core.redis_manager import RedisManager
from core.model import Model, utcnow
from app.models.queue_failed_job import QueueFailedJob

logger = logging.getLogger("Herald.RedisQueue")

# Moves due members of KEYS[1] (delayed set) onto KEYS[2] (ready list) in one step
MIGRATE_DUE_JOBS = """
local due = redis.call('zrangebyscore', KEYS[1], '-inf', ARGV[1])
for _, job in ipairs(due) do
    redis.call('zrem', KEYS[1], job)
    redis.call('rpush', KEYS[2], job)
end
return #due
"""


class RedisQueue(QueueDriver):
    """
    Redis-backed queue driver using Redis lists and sorted sets.

    Ready jobs live in a list, delayed jobs in a sorted set scored by the
    time they become visible, and reserved jobs in a per-queue list until
    the worker deletes them. Delays never block a worker.
    """

    connection_name = "redis"

    def __init__(self, redis_manager: RedisManager, block_timeout: Optional[int] = None):
        """
        Initialize the Redis queue driver.

        Args:
            redis_manager: Connected RedisManager
            block_timeout: Seconds pop() waits for a job before returning None
        """
        self.redis = redis_manager
        if block_timeout is None:
            block_timeout = int(os.getenv("QUEUE_BLOCK_TIMEOUT", "5"))
        self.block_timeout = block_timeout

    def _get_queue_key(self, queue: str) -> str:
        """Get the Redis key for a queue."""
        return f"herald:queue:{queue}"

    def _get_delayed_key(self, queue: str) -> str:
        """Get the Redis key for delayed jobs in a queue."""
        return f"herald:queue:{queue}:delayed"

    def _get_reserved_key(self, queue: str) -> str:
        """Get the Redis key for reserved jobs in a queue."""
        return f"herald:queue:{queue}:reserved"

    def _client(self):
        client = self.redis.get_client()
        if client is None:
            logger.error("Redis queue used while Redis is disabled or not connected")
            raise RuntimeError("Redis is not connected. Enable and initialize it to use RedisQueue.")
        return client

    async def push(
        self,
        queue: str,
        payload: Dict[str, Any],
        delay: int = 0,
    ) -> str:
        """Push a new job onto the queue."""
        client = self._client()
        job_id = f"{queue}:{uuid.uuid4().hex}"
        job_json = json.dumps({
            "id": job_id,
            "payload": payload,
            "attempts": int(payload.get("attempts", 0)),
        })

        try:
            if delay > 0:
                await client.zadd(self._get_delayed_key(queue), {job_json: time.time() + delay})
                logger.debug(f"Job {job_id} pushed to delayed queue '{queue}' with {delay}s delay")
            else:
                await client.rpush(self._get_queue_key(queue), job_json)
                logger.debug(f"Job {job_id} pushed to queue '{queue}'")
            return job_id

        except Exception as e:
            logger.error(f"Failed to push job to Redis queue: {str(e)}")
            raise

    async def _migrate_delayed_jobs(self, queue: str) -> int:
        """Move delayed jobs that are now due to the ready list."""
        client = self._client()
        migrate = client.register_script(MIGRATE_DUE_JOBS)
        moved = int(await migrate(
            keys=[self._get_delayed_key(queue), self._get_queue_key(queue)],
            args=[time.time()],
        ) or 0)

        if moved:
            logger.debug(f"Migrated {moved} delayed jobs to queue '{queue}'")
        return moved

    async def pop(self, queue: str = "default") -> Optional[dict]:
        """Wait up to block_timeout seconds for the next job and reserve it."""
        client = self._client()
        try:
            await self._migrate_delayed_jobs(queue)

            # Atomic move from ready to reserved, FIFO
            job_json = await client.blmove(
                self._get_queue_key(queue),
                self._get_reserved_key(queue),
                self.block_timeout,
                "LEFT",
                "RIGHT",
            )

            if not job_json:
                return None

            job_data = json.loads(job_json)
            attempts = int(job_data.get("attempts", 0)) + 1
            logger.debug(f"Job {job_data['id']} popped from queue '{queue}' (attempt {attempts})")

            return {
                "id": job_data["id"],
                "queue": queue,
                "payload": job_data["payload"],
                "attempts": attempts,
            }

        except Exception as e:
            logger.error(f"Failed to pop job from Redis queue: {str(e)}")
            raise

    async def release(
        self,
        queue: str,
        payload: Dict[str, Any],
        delay: int = 0,
    ) -> str:
        """Requeue a copy of the job; delayed copies go to the sorted set."""
        job_id = await self.push(queue, payload, delay)
        logger.debug(f"Job released back to queue '{queue}' as {job_id} with delay {delay}s")
        return job_id

    async def delete(self, job_id: str) -> None:
        """Delete a reserved job."""
        client = self._client()
        queue = str(job_id).rsplit(":", 1)[0]
        reserved_key = self._get_reserved_key(queue)

        try:
            for job_json in await client.lrange(reserved_key, 0, -1):
                if json.loads(job_json).get("id") == job_id:
                    await client.lrem(reserved_key, 1, job_json)
                    logger.debug(f"Job {job_id} deleted from queue '{queue}'")
                    return

            logger.warning(f"Job {job_id} not found in reserved queue '{queue}'")

        except Exception as e:
            logger.error(f"Failed to delete job: {str(e)}")
            raise

    async def failed(
        self,
        connection: str,
        queue: str,
        payload: str,
        exception: str,
    ) -> None:
        """
        Store a failed job.
        If the database is enabled, store it there. Otherwise, store in Redis.
        """
        if Model._is_enabled:
            session = await Model.get_session()
            try:
                session.add(QueueFailedJob(
                    connection=connection,
                    queue=queue,
                    payload=payload,
                    exception=exception,
                    failed_at=utcnow(),
                ))
                await session.commit()
                logger.info(f"Failed job stored in database for queue '{queue}'")
            except Exception:
                await session.rollback()
                raise
            finally:
                await session.close()
            return

        client = self._client()
        failed_data = {
            "connection": connection,
            "queue": queue,
            "payload": payload,
            "exception": exception,
            "failed_at": utcnow().isoformat(),
        }
        await client.rpush(f"herald:queue:failed:{queue}", json.dumps(failed_data))
        logger.info(f"Failed job stored in Redis for queue '{queue}'")

    async def size(self, queue: str = "default") -> int:
        """Get the size of the queue, delayed jobs included."""
        client = self._client()
        main_count = await client.llen(self._get_queue_key(queue))
        delayed_count = await client.zcard(self._get_delayed_key(queue))
        return main_count + delayed_count
