import unittest

from core.notifications.channel import Channel
from core.notifications.channel_registry import ChannelRegistry
from core.notifications.exceptions import ChannelError, UnregisteredChannelError


class FakeMailChannel(Channel):
    name = "mail"

    async def send(self, notifiable, notification, payload):
        pass


class OtherMailChannel(FakeMailChannel):
    pass


class TestChannelRegistry(unittest.TestCase):
    def setUp(self):
        self.registry = ChannelRegistry()

    def test_resolve_is_case_insensitive(self):
        self.registry.register("mail", FakeMailChannel)

        self.assertIsInstance(self.registry.resolve("Mail"), FakeMailChannel)
        self.assertIsInstance(self.registry.resolve("MAIL"), FakeMailChannel)
        self.assertTrue(self.registry.has("mAiL"))

    def test_unregistered_channel_names_the_channel(self):
        with self.assertRaises(UnregisteredChannelError) as ctx:
            self.registry.resolve("sms")

        self.assertEqual(ctx.exception.channel, "sms")
        self.assertIsInstance(ctx.exception, ChannelError)
        self.assertIn("[sms]", str(ctx.exception))

    def test_register_overwrites(self):
        self.registry.register("mail", FakeMailChannel)
        self.registry.register("MAIL", OtherMailChannel)

        self.assertIsInstance(self.registry.resolve("mail"), OtherMailChannel)
        self.assertEqual(self.registry.all(), ["mail"])

    def test_factory_builds_fresh_instances(self):
        self.registry.register("mail", lambda: FakeMailChannel())

        first = self.registry.resolve("mail")
        second = self.registry.resolve("mail")
        self.assertIsNot(first, second)

    def test_has_and_all(self):
        self.assertFalse(self.registry.has("log"))
        self.registry.register("Log", FakeMailChannel)
        self.registry.register("database", FakeMailChannel)
        self.assertEqual(self.registry.all(), ["log", "database"])


if __name__ == '__main__':
    unittest.main()
