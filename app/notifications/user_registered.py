from html import escape
from typing import Any, Dict, List

from app.models.user import User
from core.model import utcnow
from core.notifications.notification import Notification


class UserRegistered(Notification):
    """Tells administrators that a new user signed up."""

    def __init__(self, user: User):
        self.user = user

    def via(self, notifiable: Any) -> List[str]:
        return ["database", "mail", "log"]

    def to_database(self, notifiable: Any) -> Dict[str, Any]:
        return {
            "user_id": self.user.id,
            "username": self.user.username or self.user.email,
            "message": f"A new user has registered: {self.user.username}",
            "registered_at": utcnow().strftime("%Y-%m-%d %H:%M:%S"),
        }

    def to_mail(self, notifiable: Any) -> Dict[str, Any]:
        return {
            "subject": "New user sign up",
            "html": f"<p>New user has registered: {escape(self.user.username or '')}</p>",
            "text": f"New user has registered: {self.user.username}",
        }

    def to_log(self, notifiable: Any) -> str:
        return f"A new user has registered: {self.user.username}"
