import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional

from core.mail.mailer_service import MailerService

logger = logging.getLogger("Herald.Mailer")


class AbstractMailer(ABC):
    """
    A templated email addressed to one user.

    Subclasses choose the subject, the template and the template data;
    the recipient defaults to the user's email address.
    """

    # Layout under <template path>/layouts
    layout: Optional[str] = "default"

    def __init__(self, user: Any):
        self.user = user

    @abstractmethod
    def get_data(self) -> Dict[str, Any]:
        pass

    @abstractmethod
    def get_subject(self) -> str:
        pass

    @abstractmethod
    def get_template(self) -> str:
        pass

    def get_recipient(self) -> str:
        return self.user.email

    async def build_and_send(
        self,
        service: MailerService,
        layout: Optional[str] = None,
        attachments: Optional[List[Dict[str, Any]]] = None,
        template_path: Optional[str] = None,
    ) -> None:
        await service.send_template(
            self.get_recipient(),
            self.get_subject(),
            self.get_template(),
            self.get_data(),
            layout or self.layout,
            attachments,
            template_path,
        )
        logger.debug(f"{self.__class__.__name__} sent to {self.get_recipient()}")

    @classmethod
    async def send_to(cls, user: Any, service: MailerService) -> None:
        await cls(user).build_and_send(service)
