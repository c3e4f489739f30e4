from sqlalchemy import Column, String, DateTime, Date, Enum as SQLEnum, Integer, Text, ForeignKey
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base


class TaskPriority(str, enum.Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    IMPORTANT = "Important"
    SUPER_IMPORTANT = "Super Important"

    @property
    def rank(self) -> int:
        """1 is the most urgent"""
        return PRIORITY_RANK[self]


PRIORITY_RANK = {
    TaskPriority.SUPER_IMPORTANT: 1,
    TaskPriority.IMPORTANT: 2,
    TaskPriority.HIGH: 3,
    TaskPriority.MEDIUM: 4,
    TaskPriority.LOW: 5,
}

HIGH_PRIORITIES = (TaskPriority.HIGH, TaskPriority.IMPORTANT, TaskPriority.SUPER_IMPORTANT)


class TaskStatus(str, enum.Enum):
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    OVERDUE = "Overdue"


class Task(Base):
    """Assignment given to a student"""
    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, autoincrement=True)
    student_id = Column(Integer, ForeignKey("students.id", ondelete="CASCADE"), nullable=False, index=True)
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    priority = Column(
        SQLEnum(TaskPriority, name="task_priority", values_callable=lambda e: [m.value for m in e]),
        default=TaskPriority.MEDIUM,
        nullable=False
    )
    status = Column(
        SQLEnum(TaskStatus, name="task_status", values_callable=lambda e: [m.value for m in e]),
        default=TaskStatus.PENDING,
        nullable=False
    )
    due_date = Column(Date, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    student = relationship("Student", back_populates="tasks")
    creator = relationship("User", foreign_keys=[created_by])

    def __repr__(self):
        return f"<Task {self.title!r} [{self.priority.value if self.priority else None}]>"
