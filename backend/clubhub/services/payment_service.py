"""Payment reconciliation for paid events.

createOrder asks the gateway for an order and records it as ``created``.
verifyPayment checks the checkout signature before touching any row, then
moves the payment to ``paid`` and issues the registration in the same
transaction. Repeated callbacks for an already-paid order are answered with
the existing registration.
"""
import logging
from dataclasses import dataclass
from typing import Any, Optional

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clubhub.config import settings
from clubhub.errors import (
    AlreadyCompletedError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    PaymentVerificationError,
    ValidationError,
)
from clubhub.models.event import Event, EventStatus
from clubhub.models.payment import Payment, PaymentStatus
from clubhub.models.registration import Registration
from clubhub.services import event_service, registration_service
from clubhub.services.clock import utcnow

logger = logging.getLogger(__name__)
security_logger = logging.getLogger("clubhub.security")


@dataclass
class VerificationResult:
    payment: Payment
    registration: Registration
    already_verified: bool


def _paid_payment(db: Session, student_id: str, event_id: str) -> Optional[Payment]:
    return (
        db.query(Payment)
        .filter(
            Payment.student_id == student_id,
            Payment.event_id == event_id,
            Payment.status == PaymentStatus.paid,
        )
        .first()
    )


def _payable_event(db: Session, event_id: str) -> Event:
    event = event_service.get_event(db, event_id)
    if event.status != EventStatus.approved:
        raise NotFoundError("Event not available")
    if not event.is_paid or (event.price or 0) <= 0:
        raise ValidationError("This is not a paid event")
    return event


def _ensure_not_completed(db: Session, student_id: str, event_id: str) -> None:
    if registration_service.find_registration(db, event_id, student_id):
        raise AlreadyCompletedError("Already registered for this event")
    if _paid_payment(db, student_id, event_id):
        raise AlreadyCompletedError("Payment already completed for this event")


def get_checkout_summary(db: Session, student_id: str, event_id: str) -> dict[str, Any]:
    event = _payable_event(db, event_id)
    _ensure_not_completed(db, student_id, event_id)
    return {
        "event_id": event.event_id,
        "title": event.title,
        "venue": event.venue,
        "date": event.date,
        "price": event.price,
        "currency": settings.PAYMENT_CURRENCY,
    }


def to_minor_units(price: float) -> int:
    return int(round(price * 100))


def create_order(db: Session, student_id: str, event_id: str, gateway) -> Payment:
    """Create a gateway order for a paid event.

    Re-checks "not registered" and "not already paid" on every call, so a
    retry after success fails fast instead of opening a second chargeable
    order. Unpaid ``created`` orders may accumulate.
    """
    event = _payable_event(db, event_id)
    if not event_service.is_visible_to(db, event, student_id):
        raise AuthorizationError("This event is open to club members only")
    _ensure_not_completed(db, student_id, event_id)
    registration_service.check_registration_open(db, event)

    receipt = f"evt_{event_id[-6:]}_{student_id[-6:]}"
    order = gateway.create_order(to_minor_units(event.price), settings.PAYMENT_CURRENCY, receipt)

    payment = Payment(
        student_id=student_id,
        event_id=event_id,
        amount=event.price,
        currency=order.currency,
        gateway_order_id=order.order_id,
        status=PaymentStatus.created,
    )
    db.add(payment)
    db.commit()
    db.refresh(payment)
    logger.info("Payment %s created: order %s, student %s, event %s, amount %s",
                payment.payment_id, order.order_id, student_id, event_id, event.price)
    return payment


def _already_verified(db: Session, payment: Payment, gateway_payment_id: str) -> VerificationResult:
    if payment.gateway_payment_id and payment.gateway_payment_id != gateway_payment_id:
        logger.warning(
            "Gateway anomaly: order %s already paid with %s, callback carried %s",
            payment.gateway_order_id, payment.gateway_payment_id, gateway_payment_id,
        )
    registration = registration_service.find_registration(db, payment.event_id, payment.student_id)
    if registration is None:
        raise NotFoundError("Registration for this payment not found")
    return VerificationResult(payment=payment, registration=registration, already_verified=True)


def _find_payment(db: Session, gateway_order_id: str, student_id: str, event_id: str) -> Optional[Payment]:
    return (
        db.query(Payment)
        .filter(
            Payment.gateway_order_id == gateway_order_id,
            Payment.student_id == student_id,
            Payment.event_id == event_id,
        )
        .first()
    )


def verify_payment(
    db: Session,
    student_id: str,
    event_id: str,
    gateway_order_id: str,
    gateway_payment_id: str,
    gateway_signature: str,
    gateway,
    blob_store,
) -> VerificationResult:
    """Finalize a checkout.

    Seats are held by registrations, so capacity is checked again here: a
    payment that lands after the event filled up stays ``created``, is logged
    for a manual refund and answered with 409.
    """
    # Step 1: signature first, before any read or write of payment state
    if not gateway.verify_signature(gateway_order_id, gateway_payment_id, gateway_signature):
        security_logger.warning(
            "Payment signature mismatch: order %s, payment %s, student %s, event %s",
            gateway_order_id, gateway_payment_id, student_id, event_id,
        )
        raise PaymentVerificationError("Payment verification failed")

    # Step 2
    payment = _find_payment(db, gateway_order_id, student_id, event_id)
    if not payment:
        raise NotFoundError("Payment record not found")

    # Step 3: repeated callback
    if payment.status == PaymentStatus.paid:
        return _already_verified(db, payment, gateway_payment_id)

    # Step 4: finalize and register in one transaction
    registration = registration_service.find_registration(db, event_id, student_id)
    qr_url = None
    if registration is None:
        try:
            registration_service.check_capacity(db, event_service.get_event(db, event_id))
        except ConflictError:
            logger.error(
                "Order %s paid (gateway payment %s) after event %s filled up; refund due to student %s",
                gateway_order_id, gateway_payment_id, event_id, student_id,
            )
            raise
        registration = registration_service.stage_registration(db, event_id, student_id, blob_store)
        qr_url = registration.qr_code

    # The paid-order index is checked by the UPDATE itself, the registration insert at commit
    try:
        result = db.execute(
            update(Payment)
            .where(Payment.payment_id == payment.payment_id, Payment.status == PaymentStatus.created)
            .values(
                status=PaymentStatus.paid,
                gateway_payment_id=gateway_payment_id,
                gateway_signature=gateway_signature,
                paid_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            # A concurrent callback finalized this payment first
            db.rollback()
            if qr_url:
                blob_store.delete(qr_url)
            db.refresh(payment)
            return _already_verified(db, payment, gateway_payment_id)
        db.commit()
    except IntegrityError:
        db.rollback()
        if qr_url:
            blob_store.delete(qr_url)
        db.refresh(payment)
        if payment.status == PaymentStatus.paid:
            return _already_verified(db, payment, gateway_payment_id)
        logger.error(
            "Order %s paid (gateway payment %s) but the student already holds a paid order for event %s",
            gateway_order_id, gateway_payment_id, event_id,
        )
        raise ConflictError("Payment already completed for this event")

    db.refresh(payment)
    db.refresh(registration)
    logger.info(
        "Payment %s verified (gateway payment %s); registration %s",
        payment.payment_id, gateway_payment_id, registration.registration_id,
    )
    return VerificationResult(payment=payment, registration=registration, already_verified=False)
