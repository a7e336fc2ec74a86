"""Registration ORM model: one per student per event."""
import uuid
from sqlalchemy import Column, String, Boolean, DateTime, ForeignKey, UniqueConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from clubhub.database import Base
from clubhub.services.qr_service import encode_payload


class Registration(Base):
    __tablename__ = "registrations"
    __table_args__ = (
        UniqueConstraint("event_id", "student_id", name="uq_registrations_event_student"),
    )

    registration_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False)
    student_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    qr_token = Column(String(64), nullable=False, unique=True)
    qr_code = Column(String(500), nullable=False)
    registered_at = Column(DateTime(timezone=True), server_default=func.now())
    attended = Column(Boolean, nullable=False, default=False)
    attended_at = Column(DateTime(timezone=True), nullable=True)

    event = relationship("Event")

    @property
    def qr_payload(self) -> str:
        """The string encoded into this registration's QR image."""
        return encode_payload(self.event_id, self.student_id, self.qr_token)
