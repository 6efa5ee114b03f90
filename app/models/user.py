from typing import List

from sqlalchemy import Boolean, Column, Integer, String, select

from core.model import Base, Model
from core.notifications.notifiable import Notifiable


class User(Base, Notifiable):
    """Model for users table - the notifiable entity events are raised about."""

    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(150), nullable=False, unique=True)
    email = Column(String(255), nullable=False)
    is_admin = Column(Boolean, nullable=False, default=False)
    deleted = Column(Boolean, nullable=False, default=False)

    def __repr__(self):
        return f"<User(id={self.id}, username='{self.username}')>"

    def route_notification_for_mail(self) -> str:
        return self.email

    @classmethod
    async def admins(cls) -> List["User"]:
        """Active administrators."""
        session = await Model.get_session()
        if session is None:
            return []
        try:
            result = await session.execute(
                select(cls).where(cls.is_admin.is_(True), cls.deleted.is_(False)).order_by(cls.id)
            )
            return list(result.scalars().all())
        finally:
            await session.close()
