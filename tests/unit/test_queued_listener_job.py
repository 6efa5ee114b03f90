import asyncio
import json
import os
import unittest
from dataclasses import dataclass
from unittest.mock import patch

from core.exceptions import JobRehydrationError
from core.job import Job
from core.queue.queued_listener_job import QueuedListenerJob, event_payload
from core.type_registry import TypeRegistry, type_identifier


class InvoicePaid:
    def __init__(self, invoice_id, amount):
        self.invoice_id = invoice_id
        self.amount = amount

    def to_payload(self):
        return {"invoice_id": self.invoice_id, "amount": self.amount}

    @classmethod
    def from_payload(cls, data):
        return cls(data["invoice_id"], data["amount"])


class AsyncInvoicePaid(InvoicePaid):
    @classmethod
    async def from_payload(cls, data):
        await asyncio.sleep(0)
        return cls(data["invoice_id"], data["amount"] * 2)


@dataclass
class UserBanned:
    user_id: int
    reason: str


class PlainEvent:
    pass


received = []


class RecordingListener:
    def handle(self, event):
        received.append(event)


class AsyncRecordingListener:
    async def handle(self, event):
        received.append(event)


class ReportJob(Job):
    queue = "reports"

    def __init__(self, report_id=None):
        super().__init__()
        self.report_id = report_id

    async def handle(self):
        received.append(self.report_id)


class TestQueuedListenerJob(unittest.TestCase):
    def setUp(self):
        received.clear()
        self.types = TypeRegistry()
        self.types.register(QueuedListenerJob)
        self.types.register(RecordingListener)
        self.types.register(AsyncRecordingListener)
        self.types.register(InvoicePaid)
        self.types.register(AsyncInvoicePaid)
        self.types.register(UserBanned)
        self.types.register(PlainEvent)

    def _build(self, listener, event, options=None):
        return QueuedListenerJob.from_listener(
            type_identifier(listener),
            event,
            type_identifier(type(event)),
            options or {},
        )

    def _through_queue(self, job):
        payload = json.loads(json.dumps(job.to_payload()))
        return Job.unserialize(payload, self.types)

    def test_round_trip_invokes_listener_with_equal_event(self):
        job = self._build(RecordingListener, InvoicePaid(7, 120), {"queue": "billing", "delay": 30})
        restored = self._through_queue(job)

        self.assertIsInstance(restored, QueuedListenerJob)
        asyncio.run(restored.handle())

        self.assertEqual(len(received), 1)
        self.assertIsInstance(received[0], InvoicePaid)
        self.assertEqual(received[0].to_payload(), {"invoice_id": 7, "amount": 120})

    def test_payload_format(self):
        job = self._build(
            RecordingListener,
            InvoicePaid(1, 5),
            {"queue": "billing", "delay": 30, "backoff": [1, 2], "max_attempts": 4},
        )
        payload = job.to_payload()

        self.assertEqual(payload["job"], type_identifier(QueuedListenerJob))
        self.assertEqual(payload["queue"], "billing")
        self.assertEqual(payload["max_attempts"], 4)
        self.assertEqual(payload["data"], {
            "listener": type_identifier(RecordingListener),
            "event": type_identifier(InvoicePaid),
            "payload": {"invoice_id": 1, "amount": 5},
            "delay": 30,
            "backoff": [1, 2],
            "max_attempts": 4,
        })
        self.assertRegex(payload["available_at"], r"^\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2}$")

    def test_async_from_payload_and_async_listener(self):
        job = self._build(AsyncRecordingListener, AsyncInvoicePaid(2, 10))
        asyncio.run(self._through_queue(job).handle())

        self.assertEqual(received[0].amount, 20)

    def test_dataclass_event_without_payload_methods(self):
        event = UserBanned(4, "spam")
        self.assertEqual(event_payload(event), {"user_id": 4, "reason": "spam"})

        job = self._build(RecordingListener, event)
        asyncio.run(self._through_queue(job).handle())

        self.assertEqual(received[0].user_id, 4)
        self.assertEqual(received[0].reason, "spam")

    def test_event_without_state_gives_empty_payload(self):
        job = self._build(RecordingListener, PlainEvent())
        self.assertEqual(job.payload, {})

        asyncio.run(self._through_queue(job).handle())
        self.assertIsInstance(received[0], PlainEvent)

    def test_unknown_listener_raises_rehydration_error(self):
        job = QueuedListenerJob(
            listener="app.listeners.Removed",
            event=type_identifier(InvoicePaid),
            payload={"invoice_id": 1, "amount": 1},
        )
        job._types = self.types

        with self.assertRaises(JobRehydrationError) as ctx:
            asyncio.run(job.handle())
        self.assertEqual(ctx.exception.identifier, "app.listeners.Removed")
        self.assertEqual(received, [])

    def test_unknown_event_raises_rehydration_error(self):
        job = QueuedListenerJob(listener=type_identifier(RecordingListener), event="app.events.Gone")
        job._types = self.types

        with self.assertRaises(JobRehydrationError):
            asyncio.run(job.handle())


class TestJob(unittest.TestCase):
    def test_unserialize_unknown_job_type(self):
        with self.assertRaises(JobRehydrationError):
            Job.unserialize({"job": "jobs.Missing", "data": {}}, TypeRegistry())

    def test_unserialize_rejects_non_job_type(self):
        types = TypeRegistry()
        types.register(PlainEvent)

        with self.assertRaises(JobRehydrationError):
            Job.unserialize({"job": type_identifier(PlainEvent), "data": {}}, types)

    def test_custom_job_round_trip(self):
        types = TypeRegistry()
        types.register(ReportJob)

        payload = json.loads(json.dumps(ReportJob(report_id=99).to_payload()))
        self.assertEqual(payload["data"], {"report_id": 99})
        self.assertEqual(payload["queue"], "reports")

        job = Job.unserialize(dict(payload, attempts=2), types)
        self.assertEqual(job.attempts, 2)
        asyncio.run(job.handle())
        self.assertEqual(received[-1], 99)

    def test_backoff_list_is_indexed_per_attempt(self):
        job = ReportJob()
        job.backoff = [10, 30, 60]

        self.assertEqual(job.backoff_for(1), 10)
        self.assertEqual(job.backoff_for(2), 30)
        self.assertEqual(job.backoff_for(3), 60)
        self.assertEqual(job.backoff_for(7), 60)

    def test_backoff_scalar(self):
        job = ReportJob()
        job.backoff = 15
        self.assertEqual(job.backoff_for(1), 15)
        self.assertEqual(job.backoff_for(4), 15)

        job.backoff = []
        self.assertEqual(job.backoff_for(1), 0)

    def test_max_attempts_falls_back_to_configured_default(self):
        job = ReportJob()

        with patch.dict(os.environ, {"QUEUE_MAX_ATTEMPTS": "7"}):
            self.assertEqual(job.resolve_max_attempts(), 7)

        with patch.dict(os.environ, {}, clear=False):
            os.environ.pop("QUEUE_MAX_ATTEMPTS", None)
            self.assertEqual(job.resolve_max_attempts(), 3)

        job.max_attempts = 5
        self.assertEqual(job.resolve_max_attempts(), 5)


if __name__ == '__main__':
    unittest.main()
