from datetime import timedelta
from typing import List, Optional

from sqlalchemy import Column, String, Text, DateTime, select, update, delete

from core.model import Base, Model, utcnow


class DatabaseNotification(Base):
    """Model for notifications table - notifications stored by the database channel."""

    __tablename__ = "notifications"

    id = Column(String(36), primary_key=True)
    type = Column(String(255), nullable=False)
    notifiable_type = Column(String(255), nullable=False, index=True)
    notifiable_id = Column(String(64), nullable=False, index=True)
    data = Column(Text, nullable=False)
    read_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    def __repr__(self):
        return f"<DatabaseNotification(id='{self.id}', type='{self.type}', read_at='{self.read_at}')>"

    @classmethod
    async def unread_for(cls, notifiable_type: str, notifiable_id) -> List["DatabaseNotification"]:
        """Unread notifications for one notifiable, newest first."""
        session = await Model.get_session()
        if session is None:
            return []
        try:
            stmt = (
                select(cls)
                .where(
                    cls.notifiable_type == notifiable_type,
                    cls.notifiable_id == str(notifiable_id),
                    cls.read_at.is_(None),
                )
                .order_by(cls.created_at.desc())
            )
            result = await session.execute(stmt)
            return list(result.scalars().all())
        finally:
            await session.close()

    @classmethod
    async def mark_as_read(
        cls,
        notifiable_type: str,
        notifiable_id,
        notification_id: Optional[str] = None,
    ) -> int:
        """
        Mark one notification (or all of a notifiable's notifications) as read.

        Returns:
            Number of rows updated
        """
        session = await Model.get_session()
        if session is None:
            return 0
        try:
            stmt = update(cls).where(
                cls.notifiable_type == notifiable_type,
                cls.notifiable_id == str(notifiable_id),
                cls.read_at.is_(None),
            )
            if notification_id is not None:
                stmt = stmt.where(cls.id == notification_id)
            result = await session.execute(stmt.values(read_at=utcnow()))
            await session.commit()
            return result.rowcount
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    @classmethod
    async def prune(cls, days: int) -> int:
        """
        Delete notifications older than the retention window.

        Returns:
            Number of rows deleted
        """
        session = await Model.get_session()
        if session is None:
            return 0
        try:
            cutoff = utcnow() - timedelta(days=days)
            result = await session.execute(delete(cls).where(cls.created_at < cutoff))
            await session.commit()
            return result.rowcount
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
