import asyncio
import json
import logging
import mimetypes
import os
import smtplib
from email.mime.application import MIMEApplication
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from html import escape
from pathlib import Path
from string import Template
from typing import Any, Dict, List, Optional, Tuple

from core.model import utcnow

logger = logging.getLogger("Herald.MailerService")

DEFAULT_TEMPLATE_PATH = Path(__file__).resolve().parents[2] / "resources" / "emails"


class MailerService:
    """
    Sends mail over SMTP.

    Templates are files under the template path: ``<name>.html`` rendered
    with string.Template, an optional ``<name>.txt`` plain-text part, and an
    optional ``layouts/<layout>.html`` wrapper receiving the rendered body as
    ``$content``. Every send is logged as one JSON line; transport errors are
    logged and re-raised.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        port: Optional[int] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        use_tls: Optional[bool] = None,
        from_address: Optional[str] = None,
        template_path: Optional[str] = None,
    ):
        self.host = host or os.getenv("MAIL_HOST", "localhost")
        self.port = port or int(os.getenv("MAIL_PORT", "587"))
        self.username = username if username is not None else os.getenv("MAIL_USERNAME", "")
        self.password = password if password is not None else os.getenv("MAIL_PASSWORD", "")
        if use_tls is None:
            use_tls = os.getenv("MAIL_USE_TLS", "true").lower() == "true"
        self.use_tls = use_tls
        self.from_address = from_address or os.getenv("MAIL_FROM_ADDRESS", "no-reply@localhost")
        self.template_path = Path(template_path or os.getenv("MAIL_TEMPLATE_PATH") or DEFAULT_TEMPLATE_PATH)

    async def send(
        self,
        to: str,
        subject: str,
        html: str,
        template: Optional[str] = None,
        attachments: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        """Send an HTML-only message."""
        await self._send(to, subject, html, None, template, attachments)

    async def send_with_text(
        self,
        to: str,
        subject: str,
        html: str,
        text: str,
        template: Optional[str] = None,
        attachments: Optional[List[Dict[str, Any]]] = None,
    ) -> None:
        """Send a message with HTML and plain-text alternatives."""
        await self._send(to, subject, html, text, template, attachments)

    async def send_template(
        self,
        to: str,
        subject: str,
        template: str,
        data: Optional[Dict[str, Any]] = None,
        layout: Optional[str] = None,
        attachments: Optional[List[Dict[str, Any]]] = None,
        template_path: Optional[str] = None,
    ) -> None:
        """
        Render a template and send it.

        Raises:
            FileNotFoundError: If the template does not exist
        """
        html, text = self.render(template, data or {}, layout, template_path)
        if text is not None:
            await self.send_with_text(to, subject, html, text, template, attachments)
        else:
            await self.send(to, subject, html, template, attachments)

    def render(
        self,
        template: str,
        data: Dict[str, Any],
        layout: Optional[str] = None,
        template_path: Optional[str] = None,
    ) -> Tuple[str, Optional[str]]:
        """
        Render a template to (html, text). text is None without a .txt file.

        A missing layout is ignored and the bare content is returned.
        """
        base = Path(template_path) if template_path else self.template_path
        html_file = base / f"{template}.html"
        if not html_file.is_file():
            raise FileNotFoundError(f"Email template '{template}' not found in {base}")

        values = {key: "" if value is None else str(value) for key, value in data.items()}
        # Only the html parts are escaped; content is already rendered html
        html_values = {key: escape(value) for key, value in values.items()}
        html = Template(html_file.read_text(encoding="utf-8")).safe_substitute(html_values)

        if layout:
            layout_file = base / "layouts" / f"{layout}.html"
            if layout_file.is_file():
                html = Template(layout_file.read_text(encoding="utf-8")).safe_substitute(
                    html_values, content=html
                )
            else:
                logger.warning(f"Email layout '{layout}' not found in {base / 'layouts'}")

        text = None
        text_file = base / f"{template}.txt"
        if text_file.is_file():
            text = Template(text_file.read_text(encoding="utf-8")).safe_substitute(values)

        return html, text

    def build_message(
        self,
        to: str,
        subject: str,
        html: str,
        text: Optional[str] = None,
        attachments: Optional[List[Dict[str, Any]]] = None,
    ) -> MIMEMultipart:
        body = MIMEMultipart("alternative")
        if text is not None:
            body.attach(MIMEText(text, "plain", "utf-8"))
        body.attach(MIMEText(html, "html", "utf-8"))

        if attachments:
            msg = MIMEMultipart("mixed")
            msg.attach(body)
            for attachment in attachments:
                msg.attach(self._attachment_part(attachment))
        else:
            msg = body

        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = to
        return msg

    @staticmethod
    def _attachment_part(attachment: Dict[str, Any]) -> MIMEApplication:
        """
        Build a MIME part from {"path": ...} or {"filename", "content", "mime_type"}.
        """
        if "path" in attachment:
            path = Path(attachment["path"])
            content = path.read_bytes()
            filename = attachment.get("filename") or path.name
        else:
            content = attachment["content"]
            if isinstance(content, str):
                content = content.encode("utf-8")
            filename = attachment["filename"]

        mime_type = attachment.get("mime_type") or mimetypes.guess_type(filename)[0] or "application/octet-stream"
        subtype = mime_type.split("/", 1)[1] if "/" in mime_type else "octet-stream"
        part = MIMEApplication(content, _subtype=subtype)
        part.add_header("Content-Disposition", "attachment", filename=filename)
        return part

    async def _send(
        self,
        to: str,
        subject: str,
        html: str,
        text: Optional[str],
        template: Optional[str],
        attachments: Optional[List[Dict[str, Any]]],
    ) -> None:
        try:
            msg = self.build_message(to, subject, html, text, attachments)
            await asyncio.to_thread(self._deliver, to, msg)
        except Exception as e:
            self._log("failed", to, subject, template, str(e))
            raise

        self._log("sent", to, subject, template)

    def _deliver(self, to: str, msg: MIMEMultipart) -> None:
        with smtplib.SMTP(self.host, self.port, timeout=30) as server:
            if self.use_tls:
                server.starttls()
            if self.username:
                server.login(self.username, self.password)
            server.sendmail(self.from_address, [to], msg.as_string())

    def _log(
        self,
        status: str,
        to: str,
        subject: str,
        template: Optional[str],
        error: Optional[str] = None,
    ) -> None:
        entry = {
            "status": status,
            "timestamp": utcnow().strftime("%Y-%m-%d %H:%M:%S"),
            "to": to,
            "subject": subject,
            "template": template,
            "transport": f"smtp://{self.host}:{self.port}",
        }
        if error is not None:
            entry["error"] = error
            logger.error(json.dumps(entry))
        else:
            logger.info(json.dumps(entry))
