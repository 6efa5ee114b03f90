from sqlalchemy import Column, Integer, String, Text, DateTime
from core.model import Base, utcnow


class QueueFailedJob(Base):
    """Model for queue_failed_jobs table - the dead-letter store for jobs that will not be retried."""

    __tablename__ = "queue_failed_jobs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    connection = Column(String(255), nullable=False)
    queue = Column(String(255), nullable=False, index=True)
    payload = Column(Text, nullable=False)
    exception = Column(Text, nullable=False)
    failed_at = Column(DateTime, nullable=False, default=utcnow)

    def __repr__(self):
        return f"<QueueFailedJob(id={self.id}, queue='{self.queue}', failed_at='{self.failed_at}')>"
