import asyncio
import os
import tempfile
import unittest
from email import message_from_string
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

from core.mail.mailer_service import MailerService
from core.mail.mailers import WelcomeMailer


class TestMailerService(unittest.TestCase):
    def setUp(self):
        self.templates = tempfile.TemporaryDirectory()
        os.makedirs(os.path.join(self.templates.name, "layouts"))
        self._write("greeting.html", "<p>Hello $username</p>")
        self._write("greeting.txt", "Hello $username")
        self._write("bare.html", "<p>Only html for $username</p>")
        self._write("layouts/default.html", "<html><body>$content</body></html>")
        self.service = MailerService(
            host="smtp.test",
            port=2525,
            username="user",
            password="secret",
            use_tls=True,
            from_address="noreply@test",
            template_path=self.templates.name,
        )

    def tearDown(self):
        self.templates.cleanup()

    def _write(self, name, content):
        with open(os.path.join(self.templates.name, name), "w", encoding="utf-8") as f:
            f.write(content)

    def _smtp(self):
        smtp = MagicMock()
        server = smtp.return_value.__enter__.return_value
        return smtp, server

    def test_send_uses_smtp_with_tls_and_login(self):
        smtp, server = self._smtp()
        with patch("core.mail.mailer_service.smtplib.SMTP", smtp):
            asyncio.run(self.service.send("ana@example.com", "Hi", "<p>Hi</p>"))

        smtp.assert_called_once_with("smtp.test", 2525, timeout=30)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("user", "secret")
        sender, recipients, raw = server.sendmail.call_args[0]
        self.assertEqual(sender, "noreply@test")
        self.assertEqual(recipients, ["ana@example.com"])
        message = message_from_string(raw)
        self.assertEqual(message["Subject"], "Hi")
        self.assertEqual(message["To"], "ana@example.com")

    def test_send_with_text_builds_both_parts(self):
        message = self.service.build_message("a@b.c", "Hi", "<p>Hi</p>", "Hi")
        types = [part.get_content_type() for part in message.get_payload()]
        self.assertEqual(types, ["text/plain", "text/html"])

    def test_attachments_make_mixed_message(self):
        message = self.service.build_message(
            "a@b.c", "Report", "<p>See attached</p>",
            attachments=[{"filename": "report.csv", "content": "a,b\n1,2\n", "mime_type": "text/csv"}],
        )

        self.assertEqual(message.get_content_type(), "multipart/mixed")
        attachment = message.get_payload()[1]
        self.assertEqual(attachment.get_filename(), "report.csv")

    def test_render_with_layout_and_text(self):
        html, text = self.service.render("greeting", {"username": "ana"}, "default")

        self.assertEqual(html, "<html><body><p>Hello ana</p></body></html>")
        self.assertEqual(text, "Hello ana")

    def test_render_escapes_values_in_html_only(self):
        html, text = self.service.render("greeting", {"username": "<b>ana</b> & co"}, "default")

        self.assertEqual(html, "<html><body><p>Hello &lt;b&gt;ana&lt;/b&gt; &amp; co</p></body></html>")
        self.assertEqual(text, "Hello <b>ana</b> & co")

    def test_render_missing_layout_returns_content(self):
        html, text = self.service.render("bare", {"username": "ana"}, "fancy")

        self.assertEqual(html, "<p>Only html for ana</p>")
        self.assertIsNone(text)

    def test_render_missing_template_raises(self):
        with self.assertRaises(FileNotFoundError):
            self.service.render("nope", {})

    def test_send_template_picks_text_path(self):
        smtp, server = self._smtp()
        with patch("core.mail.mailer_service.smtplib.SMTP", smtp):
            asyncio.run(self.service.send_template("ana@example.com", "Hi", "greeting", {"username": "ana"}))

        raw = server.sendmail.call_args[0][2]
        message = message_from_string(raw)
        types = [part.get_content_type() for part in message.get_payload()]
        self.assertEqual(types, ["text/plain", "text/html"])

    def test_transport_error_is_logged_and_raised(self):
        smtp, server = self._smtp()
        server.sendmail.side_effect = OSError("connection reset")

        with patch("core.mail.mailer_service.smtplib.SMTP", smtp):
            with self.assertLogs("Herald.MailerService", level="ERROR"):
                with self.assertRaises(OSError):
                    asyncio.run(self.service.send("ana@example.com", "Hi", "<p>Hi</p>"))

    def test_welcome_mailer_uses_bundled_templates(self):
        service = MailerService(host="smtp.test", port=25, use_tls=False, from_address="noreply@test")
        user = SimpleNamespace(id=1, username="ana", email="ana@example.com")
        smtp, server = self._smtp()

        with patch("core.mail.mailer_service.smtplib.SMTP", smtp):
            asyncio.run(WelcomeMailer.send_to(user, service))

        server.starttls.assert_not_called()
        sender, recipients, raw = server.sendmail.call_args[0]
        self.assertEqual(recipients, ["ana@example.com"])
        self.assertIn("Welcome", message_from_string(raw)["Subject"])


if __name__ == '__main__':
    unittest.main()
