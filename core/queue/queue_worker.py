import asyncio
import json
import logging
import signal
import time
import traceback
from typing import Optional

from core.exceptions import JobRehydrationError
from core.job import Job
from core.queue.queue_manager import QueueManager
from core.type_registry import TypeRegistry

logger = logging.getLogger("Herald.QueueWorker")


class QueueWorker:
    """
    Pops jobs from one queue and runs them.

    Successful jobs are deleted. Failed jobs are released as a copy with
    the job's backoff delay until their attempts run out, then moved to
    the failed-job store. Jobs whose types are unknown to this process
    are dead-lettered at once instead of being retried.
    """

    def __init__(
        self,
        queue_manager: QueueManager,
        types: TypeRegistry,
        queue_name: str = "default",
        max_jobs: Optional[int] = None,
        max_time: Optional[int] = None,
        once: bool = False,
        sleep: float = 3,
        timeout: int = 60,
    ):
        """
        Initialize the queue worker.

        Args:
            queue_manager: Queue to pop from
            types: Registry used to rebuild jobs
            queue_name: Name of the queue to process
            max_jobs: Maximum number of jobs to process before stopping
            max_time: Maximum time in seconds to run before stopping
            once: Process at most one job, then stop
            sleep: Number of seconds to sleep when no job is available
            timeout: Default maximum number of seconds a job can run
        """
        self.queue_manager = queue_manager
        self.types = types
        self.queue_name = queue_name
        self.max_jobs = 1 if once else max_jobs
        self.max_time = max_time
        self.once = once
        self.sleep = sleep
        self.timeout = timeout

        self.should_quit = False
        self.jobs_processed = 0
        self.start_time = None

    def install_signal_handlers(self) -> None:
        """Stop gracefully on SIGTERM/SIGINT."""
        signal.signal(signal.SIGTERM, self._handle_signal)
        signal.signal(signal.SIGINT, self._handle_signal)

    def _handle_signal(self, signum, frame):
        logger.info(f"Received signal {signum}, initiating graceful shutdown...")
        self.should_quit = True

    async def work(self) -> None:
        """
        Start processing jobs from the queue.
        This is the main worker loop.
        """
        logger.info(
            f"Queue worker started for queue '{self.queue_name}' "
            f"(connection: {self.queue_manager.connection})"
        )
        self.start_time = time.monotonic()

        while not self.should_quit:
            if self._should_stop():
                logger.info("Worker stopping due to limits")
                break

            try:
                job_data = await self.queue_manager.pop(self.queue_name)
            except Exception as e:
                logger.error(f"Error in worker loop: {str(e)}")
                logger.debug(traceback.format_exc())
                await asyncio.sleep(self.sleep)
                continue

            if job_data:
                try:
                    await self.process(job_data)
                except Exception as e:
                    logger.error(f"Error processing job {job_data.get('id')}: {str(e)}")
                    logger.debug(traceback.format_exc())
                self.jobs_processed += 1
            elif self.once:
                break
            else:
                logger.debug(f"No jobs available, sleeping for {self.sleep}s")
                await asyncio.sleep(self.sleep)

        logger.info(f"Queue worker stopped. Processed {self.jobs_processed} jobs.")

    async def process(self, job_data: dict) -> None:
        """
        Process a single reserved job.

        Args:
            job_data: Job data from the queue (id, payload, attempts)
        """
        job_id = job_data["id"]
        payload = job_data["payload"]
        attempts = job_data["attempts"]

        logger.info(f"Processing job {job_id} (attempt {attempts})")

        try:
            job = Job.unserialize(payload, self.types)
        except JobRehydrationError as e:
            logger.error(f"Job {job_id} cannot be rebuilt, moving to failed jobs: {e}")
            await self._dead_letter(job_id, payload, e)
            return

        job.job_id = job_id
        job.attempts = attempts

        try:
            await asyncio.wait_for(job.handle(), timeout=job.timeout or self.timeout)
        except asyncio.TimeoutError:
            error = TimeoutError(f"Job timed out after {job.timeout or self.timeout} seconds")
            await self._handle_failure(job, job_id, payload, attempts, error)
            return
        except JobRehydrationError as e:
            logger.error(f"Job {job_id} references unknown types, moving to failed jobs: {e}")
            await self._fail_job(job, e)
            await self._dead_letter(job_id, payload, e)
            return
        except Exception as e:
            await self._handle_failure(job, job_id, payload, attempts, e)
            return

        await self.queue_manager.delete(job_id)
        logger.info(f"Job {job_id} completed successfully")

    async def _handle_failure(self, job: Job, job_id, payload: dict, attempts: int, error: Exception) -> None:
        logger.error(f"Job {job_id} failed: {str(error)}")

        max_attempts = job.resolve_max_attempts()
        if attempts < max_attempts:
            delay = job.backoff_for(attempts)
            retry_payload = dict(payload, attempts=attempts)
            await self.queue_manager.release(self.queue_name, retry_payload, delay)
            await self.queue_manager.delete(job_id)
            logger.info(
                f"Job {job_id} released back to queue "
                f"(attempt {attempts}/{max_attempts}, delay: {delay}s)"
            )
            return

        logger.warning(f"Job {job_id} exceeded max attempts ({max_attempts}), moving to failed jobs")
        await self._fail_job(job, error)
        await self._dead_letter(job_id, payload, error)

    async def _fail_job(self, job: Job, exception: Exception) -> None:
        """Run the job's failed() hook without letting it break the worker."""
        try:
            await job.failed(exception)
        except Exception as e:
            logger.error(f"Error in failed() hook of job {job.job_id}: {str(e)}")
            logger.debug(traceback.format_exc())

    async def _dead_letter(self, job_id, payload: dict, exception: Exception) -> None:
        exception_str = f"{exception.__class__.__name__}: {str(exception)}"
        await self.queue_manager.failed(self.queue_name, json.dumps(payload), exception_str)
        await self.queue_manager.delete(job_id)
        logger.info(f"Job {job_id} moved to failed jobs")

    def _should_stop(self) -> bool:
        """Check if the worker should stop based on limits."""
        if self.max_jobs and self.jobs_processed >= self.max_jobs:
            return True

        if self.max_time and self.start_time is not None:
            if time.monotonic() - self.start_time >= self.max_time:
                return True

        return False

    def stop(self) -> None:
        """Stop the worker gracefully."""
        self.should_quit = True
        logger.info("Worker stop requested")

