import asyncio
import json
import unittest
from unittest.mock import AsyncMock, MagicMock

from core.job import Job
from core.queue.queue_worker import QueueWorker
from core.type_registry import TypeRegistry, type_identifier

handled = []


class GreetJob(Job):
    backoff = [10, 30, 60]
    max_attempts = 3

    def __init__(self, name=None):
        super().__init__()
        self.name = name

    async def handle(self):
        handled.append(self.name)


class BrokenJob(Job):
    backoff = [10, 30, 60]
    max_attempts = 3
    failures = []

    async def handle(self):
        raise ValueError("cannot do it")

    async def failed(self, exception):
        BrokenJob.failures.append(str(exception))


class SlowJob(Job):
    timeout = 1
    max_attempts = 1

    async def handle(self):
        await asyncio.sleep(5)


class ReportJob(Job):
    def __init__(self, report_id):
        super().__init__()
        self.report_id = report_id

    async def handle(self):
        handled.append(self.report_id)


class TestQueueWorker(unittest.TestCase):
    def setUp(self):
        handled.clear()
        BrokenJob.failures = []
        self.types = TypeRegistry()
        for job_class in (GreetJob, BrokenJob, SlowJob):
            self.types.register(job_class)

        self.queue = MagicMock()
        self.queue.connection = "fake"
        for name in ("pop", "release", "delete", "failed"):
            setattr(self.queue, name, AsyncMock())
        self.worker = QueueWorker(self.queue, self.types, queue_name="mail", sleep=0)

    def _job(self, job, job_id=1, attempts=1):
        return {"id": job_id, "queue": "mail", "payload": job.to_payload(), "attempts": attempts}

    def test_successful_job_is_deleted(self):
        asyncio.run(self.worker.process(self._job(GreetJob("ana"), job_id=4)))

        self.assertEqual(handled, ["ana"])
        self.queue.delete.assert_called_once_with(4)
        self.queue.release.assert_not_called()

    def test_failed_job_is_released_with_backoff(self):
        asyncio.run(self.worker.process(self._job(BrokenJob(), job_id=5, attempts=2)))

        queue_name, payload, delay = self.queue.release.call_args[0]
        self.assertEqual(queue_name, "mail")
        self.assertEqual(delay, 30)
        self.assertEqual(payload["attempts"], 2)
        self.queue.delete.assert_called_once_with(5)
        self.queue.failed.assert_not_called()
        self.assertEqual(BrokenJob.failures, [])

    def test_exhausted_job_is_dead_lettered(self):
        asyncio.run(self.worker.process(self._job(BrokenJob(), job_id=6, attempts=3)))

        self.queue.release.assert_not_called()
        queue_name, payload, exception = self.queue.failed.call_args[0]
        self.assertEqual(queue_name, "mail")
        self.assertEqual(json.loads(payload)["job"], type_identifier(BrokenJob))
        self.assertEqual(exception, "ValueError: cannot do it")
        self.queue.delete.assert_called_once_with(6)
        self.assertEqual(BrokenJob.failures, ["cannot do it"])

    def test_unknown_job_type_is_dead_lettered_immediately(self):
        payload = {"job": "jobs.Removed", "data": {}, "max_attempts": 5}
        asyncio.run(self.worker.process({"id": 7, "queue": "mail", "payload": payload, "attempts": 1}))

        self.queue.release.assert_not_called()
        self.assertIn("JobRehydrationError", self.queue.failed.call_args[0][2])
        self.queue.delete.assert_called_once_with(7)

    def test_job_that_cannot_be_built_is_dead_lettered(self):
        self.types.register(ReportJob)
        payload = ReportJob(42).to_payload()

        asyncio.run(self.worker.process({"id": 9, "queue": "mail", "payload": payload, "attempts": 1}))

        self.queue.release.assert_not_called()
        self.assertIn("JobRehydrationError", self.queue.failed.call_args[0][2])
        self.queue.delete.assert_called_once_with(9)

    def test_work_survives_errors_while_handling_a_failure(self):
        self.queue.release.side_effect = ConnectionError("down")
        self.queue.pop.side_effect = [self._job(BrokenJob(), job_id=10), self._job(GreetJob("ivy"), job_id=11)]
        worker = QueueWorker(self.queue, self.types, queue_name="mail", max_jobs=2, sleep=0)

        with self.assertLogs("Herald.QueueWorker", level="ERROR"):
            asyncio.run(worker.work())

        self.assertEqual(handled, ["ivy"])
        self.assertEqual(worker.jobs_processed, 2)
        self.queue.delete.assert_called_once_with(11)

    def test_timeout_counts_as_failure(self):
        asyncio.run(self.worker.process(self._job(SlowJob(), job_id=8, attempts=1)))

        self.assertIn("TimeoutError", self.queue.failed.call_args[0][2])
        self.queue.delete.assert_called_once_with(8)

    def test_work_once_processes_single_job(self):
        self.queue.pop.side_effect = [self._job(GreetJob("bob")), self._job(GreetJob("eve"))]
        worker = QueueWorker(self.queue, self.types, queue_name="mail", once=True, sleep=0)

        asyncio.run(worker.work())

        self.assertEqual(handled, ["bob"])
        self.assertEqual(worker.jobs_processed, 1)

    def test_work_once_stops_on_empty_queue(self):
        self.queue.pop.return_value = None
        worker = QueueWorker(self.queue, self.types, once=True, sleep=0)

        asyncio.run(worker.work())

        self.assertEqual(worker.jobs_processed, 0)
        self.queue.pop.assert_called_once()

    def test_work_stops_after_max_jobs(self):
        self.queue.pop.side_effect = [self._job(GreetJob(str(i)), job_id=i) for i in range(5)]
        worker = QueueWorker(self.queue, self.types, queue_name="mail", max_jobs=2, sleep=0)

        asyncio.run(worker.work())

        self.assertEqual(handled, ["0", "1"])

    def test_pop_errors_do_not_stop_the_worker(self):
        self.queue.pop.side_effect = [ConnectionError("down"), self._job(GreetJob("zoe"))]
        worker = QueueWorker(self.queue, self.types, queue_name="mail", max_jobs=1, sleep=0)

        asyncio.run(worker.work())

        self.assertEqual(handled, ["zoe"])

    def test_stop_ends_the_loop(self):
        self.worker.stop()
        asyncio.run(self.worker.work())
        self.queue.pop.assert_not_called()


if __name__ == '__main__':
    unittest.main()
