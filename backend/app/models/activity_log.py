from sqlalchemy import Column, String, DateTime, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base


class EntityType(str, enum.Enum):
    STUDENT = "student"
    USER = "user"
    DOCUMENT = "document"
    TASK = "task"
    OTHER = "other"


class ActivityLog(Base):
    """Append-only record of who did what to which entity"""
    __tablename__ = "activity_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    action = Column(Text, nullable=False)  # e.g. 'Created new student: Jane Doe'
    entity_type = Column(String(50), nullable=False, index=True)
    entity_id = Column(Integer, nullable=True, index=True)

    timestamp = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)

    # Relationships
    user = relationship("User", foreign_keys=[user_id])

    def __repr__(self):
        return f"<ActivityLog {self.entity_type}:{self.entity_id} by {self.user_id}>"
