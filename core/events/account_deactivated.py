from app.models.user import User


class AccountDeactivated:
    def __init__(self, user: User):
        self.user = user
