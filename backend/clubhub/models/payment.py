"""Payment ORM model (paid events only)."""
import uuid
import enum
from sqlalchemy import Column, String, DateTime, Numeric, ForeignKey, Index, Enum as SAEnum, text
from sqlalchemy.sql import func
from clubhub.database import Base


class PaymentStatus(str, enum.Enum):
    created = "created"
    paid = "paid"


class Payment(Base):
    __tablename__ = "payments"
    __table_args__ = (
        # At most one paid payment per (student, event)
        Index(
            "uq_payments_paid_student_event",
            "student_id",
            "event_id",
            unique=True,
            sqlite_where=text("status = 'paid'"),
            postgresql_where=text("status = 'paid'"),
        ),
    )

    payment_id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    student_id = Column(String(36), ForeignKey("users.user_id"), nullable=False)
    event_id = Column(String(36), ForeignKey("events.event_id"), nullable=False)
    amount = Column(Numeric(10, 2, asdecimal=False), nullable=False)
    currency = Column(String(3), nullable=False)
    gateway_order_id = Column(String(64), nullable=False, unique=True)
    gateway_payment_id = Column(String(64), nullable=True)
    gateway_signature = Column(String(128), nullable=True)
    status = Column(SAEnum(PaymentStatus), nullable=False, default=PaymentStatus.created)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    paid_at = Column(DateTime(timezone=True), nullable=True)
