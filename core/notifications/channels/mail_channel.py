import logging
from typing import Any, Dict, Optional

from core.exceptions import UnknownTypeError
from core.mail.abstract_mailer import AbstractMailer
from core.mail.mailer_service import MailerService
from core.notifications.channel import Channel
from core.notifications.exceptions import (
    ChannelSendFailedError,
    InvalidPayloadError,
    NotifiableRoutingError,
)
from core.notifications.notification import Notification
from core.type_registry import TypeRegistry

logger = logging.getLogger("Herald.MailChannel")


class MailChannel(Channel):
    """
    Sends the notification by email.

    The payload picks one of three modes, checked in this order:

    - ``mailer``: an AbstractMailer subclass (or its registered identifier)
      that builds and sends the whole message for the notifiable
    - ``template`` without ``html``: a template name with ``data`` and
      optional ``layout``, ``attachments`` and ``template_path``
    - ``html`` with optional ``text``: a ready-made body

    ``to`` overrides the recipient and ``subject`` defaults to
    "Notification". Transport failures are raised as ChannelSendFailedError.
    """

    name = "mail"

    def __init__(self, service: MailerService, types: Optional[TypeRegistry] = None):
        self.service = service
        self.types = types

    async def send(self, notifiable: Any, notification: Any, payload: Any) -> None:
        if not isinstance(notification, Notification):
            raise InvalidPayloadError("MailChannel expects a Notification instance")

        payload = payload if isinstance(payload, dict) else {}

        if payload.get("mailer"):
            await self._send_with_mailer(notifiable, notification, payload)
            return

        to = payload.get("to") or self.route(notifiable)
        subject = str(payload.get("subject") or "Notification")

        if payload.get("template") and payload.get("html") is None:
            await self._deliver(
                notifiable,
                notification,
                self.service.send_template(
                    to,
                    subject,
                    str(payload["template"]),
                    dict(payload.get("data") or {}),
                    payload.get("layout"),
                    list(payload.get("attachments") or []),
                    payload.get("template_path"),
                ),
            )
            return

        if payload.get("html") is not None:
            html = str(payload["html"])
            template = payload.get("template")
            attachments = list(payload.get("attachments") or [])
            if payload.get("text") is not None:
                send = self.service.send_with_text(to, subject, html, str(payload["text"]), template, attachments)
            else:
                send = self.service.send(to, subject, html, template, attachments)
            await self._deliver(notifiable, notification, send)
            return

        raise InvalidPayloadError('Mail payload must include one of: "template", "html", or "mailer"')

    @staticmethod
    def route(notifiable: Any) -> str:
        """
        The notifiable's email address.

        Raises:
            NotifiableRoutingError: If no non-empty address is found
        """
        router = getattr(notifiable, "route_notification_for_mail", None)
        if callable(router):
            email = router()
            if isinstance(email, str) and email:
                return email

        email = getattr(notifiable, "email", None)
        if isinstance(email, str) and email:
            return email

        raise NotifiableRoutingError("No email route found for notifiable entity")

    async def _deliver(self, notifiable: Any, notification: Notification, send) -> None:
        try:
            await send
        except FileNotFoundError as e:
            raise ChannelSendFailedError(
                self.name, notification.type_name(), getattr(notifiable, "id", None), str(e)
            ) from e
        except Exception as e:
            raise ChannelSendFailedError(
                self.name, notification.type_name(), getattr(notifiable, "id", None), "Mail transport failed"
            ) from e

    async def _send_with_mailer(self, notifiable: Any, notification: Notification, payload: Dict[str, Any]) -> None:
        mailer_class = self._resolve_mailer(payload["mailer"], notification, notifiable)
        mailer = mailer_class(notifiable)
        await self._deliver(
            notifiable,
            notification,
            mailer.build_and_send(
                self.service,
                payload.get("layout"),
                payload.get("attachments"),
                payload.get("template_path"),
            ),
        )

    def _resolve_mailer(self, mailer: Any, notification: Notification, notifiable: Any) -> type:
        notifiable_id = getattr(notifiable, "id", None)

        if isinstance(mailer, str):
            if self.types is None:
                raise ChannelSendFailedError(
                    self.name, notification.type_name(), notifiable_id,
                    f"Mailer '{mailer}' cannot be resolved without a type registry",
                )
            try:
                mailer = self.types.resolve(mailer)
            except UnknownTypeError:
                raise ChannelSendFailedError(
                    self.name, notification.type_name(), notifiable_id, f"Mailer class not found: {mailer}"
                ) from None

        if not (isinstance(mailer, type) and issubclass(mailer, AbstractMailer)):
            raise ChannelSendFailedError(
                self.name, notification.type_name(), notifiable_id,
                f"Mailer must extend AbstractMailer: {mailer!r}",
            )
        return mailer
