"""Registration and attendance service.

Per (event, student) pair:
    none --register (free) / verified payment--> registered
    registered --QR scan--> attended (terminal)

A registration is created at most once; the unique (event, student)
constraint is what guarantees it under concurrent requests, the existence
check in front of it only gives a friendlier fast path.
"""
import logging
from typing import Any, Optional

from sqlalchemy import func, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clubhub.errors import (
    AlreadyMarkedError,
    AuthorizationError,
    ConflictError,
    InvalidQrError,
    NotFoundError,
    PaymentRequiredError,
    ValidationError,
)
from clubhub.models.attendance import EventAttendance
from clubhub.models.event import Event, EventStatus
from clubhub.models.registration import Registration
from clubhub.models.user import User
from clubhub.services import event_service, qr_service
from clubhub.services.clock import campus_today, utcnow

logger = logging.getLogger(__name__)


def find_registration(db: Session, event_id: str, student_id: str) -> Optional[Registration]:
    return (
        db.query(Registration)
        .filter(Registration.event_id == event_id, Registration.student_id == student_id)
        .first()
    )


def attended_count(db: Session, event_id: str) -> int:
    """Derived from the attendance set; there is no stored counter."""
    return db.query(func.count()).select_from(EventAttendance).filter(EventAttendance.event_id == event_id).scalar()


def check_registration_window(event: Event) -> None:
    today = campus_today()
    if event.date < today:
        raise ValidationError("Event has already taken place")
    if event.registration_deadline is not None and today > event.registration_deadline:
        raise ValidationError("Registration deadline has passed")


def check_capacity(db: Session, event: Event) -> None:
    taken = db.query(func.count(Registration.registration_id)).filter(Registration.event_id == event.event_id).scalar()
    if taken >= event.max_participants:
        raise ConflictError("Event is full")


def check_registration_open(db: Session, event: Event) -> None:
    check_registration_window(event)
    check_capacity(db, event)


def stage_registration(db: Session, event_id: str, student_id: str, blob_store) -> Registration:
    """Issue a QR and add an unflushed Registration to the session.

    The caller commits; if the commit fails the caller must delete the QR blob.
    """
    token, qr_url = qr_service.issue_qr(event_id, student_id, blob_store)
    registration = Registration(event_id=event_id, student_id=student_id, qr_token=token, qr_code=qr_url)
    db.add(registration)
    return registration


def register_for_event(db: Session, student_id: str, event_id: str, blob_store) -> Registration:
    """Free-event registration with QR issuance."""
    event = event_service.get_event(db, event_id)
    if event.is_paid:
        raise PaymentRequiredError("This is a paid event - complete the payment to register")
    if event.status != EventStatus.approved:
        raise NotFoundError("Event not available")
    check_registration_window(event)
    if not event_service.is_visible_to(db, event, student_id):
        raise AuthorizationError("This event is open to club members only")
    if find_registration(db, event_id, student_id):
        raise ConflictError("Already registered for this event")
    check_capacity(db, event)

    registration = stage_registration(db, event_id, student_id, blob_store)
    qr_url = registration.qr_code
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        blob_store.delete(qr_url)
        logger.info("Duplicate registration rejected by constraint: student %s, event %s", student_id, event_id)
        raise ConflictError("Already registered for this event")
    db.refresh(registration)
    logger.info("Student %s registered for event %s (%s)", student_id, event_id, registration.registration_id)
    return registration


def find_by_qr(db: Session, payload: qr_service.QrPayload) -> Optional[Registration]:
    return (
        db.query(Registration)
        .filter(
            Registration.event_id == payload.event_id,
            Registration.student_id == payload.student_id,
            Registration.qr_token == payload.token,
        )
        .first()
    )


def mark_attendance(db: Session, leader_id: str, scanned_payload: str) -> Registration:
    """Mark the QR holder present. Checks run in a fixed order, each with its own error."""
    payload = qr_service.decode_payload(scanned_payload)

    registration = find_by_qr(db, payload)
    if not registration:
        logger.warning(
            "Rejected QR for event %s / student %s: no matching registration token",
            payload.event_id, payload.student_id,
        )
        raise InvalidQrError("Invalid or expired QR code")

    event = registration.event
    if event.club.leader_id != leader_id:
        raise AuthorizationError("Not authorized - not your club's event")

    if registration.attended:
        logger.warning("Repeat scan for registration %s (event %s)", registration.registration_id, event.event_id)
        raise AlreadyMarkedError("Attendance already marked")

    now = utcnow()
    result = db.execute(
        update(Registration)
        .where(
            Registration.registration_id == registration.registration_id,
            Registration.attended == False,  # noqa: E712
        )
        .values(attended=True, attended_at=now)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        logger.warning("Concurrent scan lost for registration %s", registration.registration_id)
        raise AlreadyMarkedError("Attendance already marked")

    if db.get(EventAttendance, (event.event_id, registration.student_id)) is None:
        db.add(EventAttendance(
            event_id=event.event_id,
            student_id=registration.student_id,
            marked_by=leader_id,
            marked_at=now,
        ))
    db.commit()
    db.refresh(registration)
    logger.info(
        "Attendance marked: student %s at event %s by leader %s",
        registration.student_id, event.event_id, leader_id,
    )
    return registration


def list_attended_students(db: Session, leader_id: str, event_id: str) -> dict[str, Any]:
    event = event_service.get_event(db, event_id)
    if event.club.leader_id != leader_id:
        raise AuthorizationError("Not authorized - not your club's event")

    rows = (
        db.query(EventAttendance, User)
        .join(User, User.user_id == EventAttendance.student_id)
        .filter(EventAttendance.event_id == event_id)
        .order_by(EventAttendance.marked_at)
        .all()
    )
    return {
        "event_id": event.event_id,
        "title": event.title,
        "attended_count": len(rows),
        "students": [
            {
                "student_id": user.user_id,
                "name": user.name,
                "email": user.email,
                "roll_number": user.roll_number,
                "marked_at": attendance.marked_at,
            }
            for attendance, user in rows
        ],
    }


def get_registered_upcoming(db: Session, student_id: str) -> list[Registration]:
    return (
        db.query(Registration)
        .join(Event, Event.event_id == Registration.event_id)
        .filter(Registration.student_id == student_id, Event.date >= campus_today())
        .order_by(Event.date.asc(), Registration.registered_at.asc())
        .all()
    )


def get_attended_history(db: Session, student_id: str) -> list[Registration]:
    return (
        db.query(Registration)
        .filter(Registration.student_id == student_id, Registration.attended == True)  # noqa: E712
        .order_by(Registration.attended_at.desc())
        .all()
    )
