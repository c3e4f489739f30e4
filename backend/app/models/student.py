from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Integer, Numeric, Text
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from app.core.database import Base


class StudentStatus(str, enum.Enum):
    ACTIVE = "Active"
    INACTIVE = "Inactive"
    GRADUATED = "Graduated"


class Student(Base):
    """Student record managed by staff"""
    __tablename__ = "students"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    department = Column(String(255), nullable=True)
    status = Column(
        SQLEnum(StudentStatus, name="student_status", values_callable=lambda e: [m.value for m in e]),
        default=StudentStatus.ACTIVE,
        nullable=False
    )
    gpa = Column(Numeric(3, 2), nullable=True)
    assigned_tasks = Column(Text, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    documents = relationship(
        "Document", back_populates="student",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="Document.upload_date.desc()"
    )
    tasks = relationship(
        "Task", back_populates="student",
        cascade="all, delete-orphan", passive_deletes=True,
        order_by="Task.created_at.desc()"
    )

    def __repr__(self):
        return f"<Student {self.email}>"
