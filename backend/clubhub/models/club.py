"""Club, ClubMember and MembershipRequest ORM models."""
import enum
import uuid
from sqlalchemy import Column, String, Text, DateTime, ForeignKey, Enum as SAEnum
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from clubhub.database import Base


class Club(Base):
    __tablename__ = "clubs"

    club_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(150), nullable=False, unique=True)
    description = Column(Text, nullable=False)
    leader_id = Column(String(36), ForeignKey("users.user_id"), nullable=True, unique=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    members = relationship("ClubMember", back_populates="club", cascade="all, delete-orphan")


class ClubMember(Base):
    __tablename__ = "club_members"

    club_id = Column(String(36), ForeignKey("clubs.club_id"), primary_key=True)
    user_id = Column(String(36), ForeignKey("users.user_id"), primary_key=True)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    club = relationship("Club", back_populates="members")


class RequestStatus(str, enum.Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class MembershipRequest(Base):
    __tablename__ = "membership_requests"

    request_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    club_id = Column(String(36), ForeignKey("clubs.club_id"), nullable=False)
    student_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    reason = Column(String(500), nullable=True)
    status = Column(SAEnum(RequestStatus), nullable=False, default=RequestStatus.pending)
    requested_at = Column(DateTime(timezone=True), server_default=func.now())
    reviewed_at = Column(DateTime(timezone=True), nullable=True)
    reviewed_by = Column(String(36), ForeignKey("users.user_id"), nullable=True)
