import asyncio
import json
import unittest
from unittest.mock import AsyncMock, MagicMock, patch

from core.queue.redis_queue import MIGRATE_DUE_JOBS, RedisQueue
from core.redis_manager import RedisManager


class TestRedisQueue(unittest.TestCase):
    def setUp(self):
        self.client = MagicMock()
        for name in ("rpush", "zadd", "blmove", "lrange", "lrem", "llen", "zcard"):
            setattr(self.client, name, AsyncMock())
        self.migrate = AsyncMock(return_value=0)
        self.client.register_script.return_value = self.migrate
        self.manager = RedisManager(client=self.client)
        self.queue = RedisQueue(self.manager, block_timeout=2)

    def test_push_without_delay_appends_to_ready_list(self):
        job_id = asyncio.run(self.queue.push("mail", {"job": "x"}))

        self.assertTrue(job_id.startswith("mail:"))
        key, raw = self.client.rpush.call_args[0]
        self.assertEqual(key, "herald:queue:mail")
        self.assertEqual(json.loads(raw), {"id": job_id, "payload": {"job": "x"}, "attempts": 0})
        self.client.zadd.assert_not_called()

    def test_push_with_delay_goes_to_sorted_set(self):
        with patch("core.queue.redis_queue.time.time", return_value=1000.0):
            asyncio.run(self.queue.push("mail", {"job": "x", "attempts": 2}, delay=60))

        key, mapping = self.client.zadd.call_args[0]
        self.assertEqual(key, "herald:queue:mail:delayed")
        (raw, score), = mapping.items()
        self.assertEqual(score, 1060.0)
        self.assertEqual(json.loads(raw)["attempts"], 2)
        self.client.rpush.assert_not_called()

    def test_release_with_delay_does_not_sleep(self):
        with patch("asyncio.sleep", new_callable=AsyncMock) as sleep:
            asyncio.run(self.queue.release("mail", {"job": "x"}, 30))

        sleep.assert_not_called()
        self.client.zadd.assert_called_once()

    def test_pop_moves_job_to_reserved_and_counts_attempt(self):
        raw = json.dumps({"id": "mail:abc", "payload": {"job": "x"}, "attempts": 1})
        self.client.blmove.return_value = raw

        job = asyncio.run(self.queue.pop("mail"))

        self.client.blmove.assert_called_once_with(
            "herald:queue:mail", "herald:queue:mail:reserved", 2, "LEFT", "RIGHT"
        )
        self.assertEqual(job, {"id": "mail:abc", "queue": "mail", "payload": {"job": "x"}, "attempts": 2})

    def test_pop_times_out_with_none(self):
        self.client.blmove.return_value = None
        self.assertIsNone(asyncio.run(self.queue.pop("mail")))

    def test_pop_migrates_due_delayed_jobs_in_one_script_call(self):
        self.migrate.return_value = 2
        self.client.blmove.return_value = None

        with patch("core.queue.redis_queue.time.time", return_value=1000.0):
            asyncio.run(self.queue.pop("mail"))

        self.client.register_script.assert_called_once_with(MIGRATE_DUE_JOBS)
        self.migrate.assert_called_once_with(
            keys=["herald:queue:mail:delayed", "herald:queue:mail"], args=[1000.0]
        )
        self.client.rpush.assert_not_called()

    def test_delete_removes_reserved_entry(self):
        other = json.dumps({"id": "mail:other", "payload": {}, "attempts": 1})
        mine = json.dumps({"id": "mail:mine", "payload": {}, "attempts": 1})
        self.client.lrange.return_value = [other, mine]

        asyncio.run(self.queue.delete("mail:mine"))

        self.client.lrange.assert_called_once_with("herald:queue:mail:reserved", 0, -1)
        self.client.lrem.assert_called_once_with("herald:queue:mail:reserved", 1, mine)

    def test_failed_without_database_goes_to_redis(self):
        asyncio.run(self.queue.failed("redis", "mail", "{}", "ValueError: boom"))

        key, raw = self.client.rpush.call_args[0]
        self.assertEqual(key, "herald:queue:failed:mail")
        self.assertEqual(json.loads(raw)["exception"], "ValueError: boom")

    def test_size_counts_ready_and_delayed(self):
        self.client.llen.return_value = 3
        self.client.zcard.return_value = 2
        self.assertEqual(asyncio.run(self.queue.size("mail")), 5)

    def test_transport_errors_propagate(self):
        self.client.blmove.side_effect = ConnectionError("down")
        with self.assertRaises(ConnectionError):
            asyncio.run(self.queue.pop("mail"))

    def test_disconnected_manager_raises(self):
        with patch.dict("os.environ", {"ENABLE_REDIS": "true"}):
            queue = RedisQueue(RedisManager(), block_timeout=1)
        with self.assertRaises(RuntimeError):
            asyncio.run(queue.push("mail", {}))


if __name__ == '__main__':
    unittest.main()
