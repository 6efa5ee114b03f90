from typing import Any, Dict

from app.models.user import User
from core.model import Model


class UserRegistered:
    """Raised after a user account has been created."""

    def __init__(self, user: User, should_send_email: bool = False):
        self.user = user
        self.should_send_email = should_send_email

    def to_payload(self) -> Dict[str, Any]:
        return {
            "user_id": int(self.user.id),
            "should_send_email": self.should_send_email,
        }

    @classmethod
    async def from_payload(cls, data: Dict[str, Any]) -> "UserRegistered":
        """Reload the user so queued listeners see its current state."""
        user = await Model.find(User, int(data["user_id"]))
        return cls(user, bool(data.get("should_send_email", False)))
