"""Event ORM model."""
import uuid
import enum
from sqlalchemy import (
    Column, String, Text, Date, DateTime, Integer, Boolean, Numeric, ForeignKey, Index, Enum as SAEnum,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from clubhub.database import Base


class EventStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class EventVisibility(str, enum.Enum):
    club_only = "club-only"
    open_to_all = "open-to-all"


class Event(Base):
    __tablename__ = "events"
    __table_args__ = (
        Index("ix_events_club_status", "club_id", "status"),
        Index("ix_events_date", "date"),
    )

    event_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    club_id = Column(String(36), ForeignKey("clubs.club_id"), nullable=False)
    created_by = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    title = Column(String(100), nullable=False)
    description = Column(Text, nullable=False)
    date = Column(Date, nullable=False)
    time = Column(String(50), nullable=False)  # free-text slot, e.g. "10:00 - 12:00"
    venue = Column(String(255), nullable=True)
    visibility = Column(SAEnum(EventVisibility), nullable=False, default=EventVisibility.club_only)
    status = Column(SAEnum(EventStatus), nullable=False, default=EventStatus.pending)
    is_paid = Column(Boolean, nullable=False, default=False)
    price = Column(Numeric(10, 2, asdecimal=False), nullable=False, default=0)
    max_participants = Column(Integer, nullable=False, default=100)
    registration_deadline = Column(Date, nullable=True)
    poster = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    club = relationship("Club")
    attendance = relationship("EventAttendance", back_populates="event", cascade="all, delete-orphan")
