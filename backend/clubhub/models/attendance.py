"""EventAttendance ORM model: the set of students marked present at an event."""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from clubhub.database import Base


class EventAttendance(Base):
    __tablename__ = "event_attendance"

    event_id = Column(String(36), ForeignKey("events.event_id"), primary_key=True)
    student_id = Column(String(36), ForeignKey("users.user_id"), primary_key=True)
    marked_by = Column(String(36), ForeignKey("users.user_id"), nullable=True)
    marked_at = Column(DateTime(timezone=True), server_default=func.now())

    event = relationship("Event", back_populates="attendance")
