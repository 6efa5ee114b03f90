from app.models.user import User


class UserPasswordResetRequested:
    """Raised when a user asks for a password reset link."""

    def __init__(self, user: User):
        self.user = user
