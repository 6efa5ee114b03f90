import os
from typing import Any, Dict

from core.mail.abstract_mailer import AbstractMailer


def _site_title() -> str:
    return os.getenv("APP_NAME", "Herald")


class WelcomeMailer(AbstractMailer):
    def get_data(self) -> Dict[str, Any]:
        return {
            "username": self.user.username,
            "email": self.user.email,
            "site_title": _site_title(),
        }

    def get_subject(self) -> str:
        return f"Welcome to {_site_title()}"

    def get_template(self) -> str:
        return "welcome"


class PasswordResetMailer(AbstractMailer):
    def get_data(self) -> Dict[str, Any]:
        return {
            "username": self.user.username,
            "site_title": _site_title(),
        }

    def get_subject(self) -> str:
        return f"{_site_title()}: reset your password"

    def get_template(self) -> str:
        return "password_reset"


class AccountDeactivatedMailer(AbstractMailer):
    def get_data(self) -> Dict[str, Any]:
        return {
            "username": self.user.username,
            "site_title": _site_title(),
        }

    def get_subject(self) -> str:
        return f"Your {_site_title()} account has been deactivated"

    def get_template(self) -> str:
        return "account_deactivated"
