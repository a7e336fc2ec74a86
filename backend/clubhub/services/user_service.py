"""User directory service: account creation, admin moderation and removal.

Self-service sign-up only ever creates students. Admin accounts are created
by an existing admin or by the ``clubhub.seed_admin`` bootstrap command;
leaders are promoted through a club.
"""
import logging
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clubhub.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from clubhub.models.attendance import EventAttendance
from clubhub.models.club import Club, ClubMember, MembershipRequest, RequestStatus
from clubhub.models.event import Event
from clubhub.models.payment import Payment
from clubhub.models.registration import Registration
from clubhub.models.user import User, UserRole
from clubhub.services.clock import campus_today

logger = logging.getLogger(__name__)


def get_user(db: Session, user_id: str) -> User:
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


def create_user(
    db: Session,
    name: str,
    email: str,
    role: UserRole = UserRole.student,
    roll_number: Optional[str] = None,
) -> User:
    if role == UserRole.leader:
        raise ValidationError("Leaders are assigned through a club")
    if role == UserRole.student and not roll_number:
        raise ValidationError("Roll number is required for students")
    if not name.strip() or not email.strip():
        raise ValidationError("Name and email are required")

    user = User(
        name=name.strip(),
        email=email.strip().lower(),
        roll_number=roll_number.strip().upper() if roll_number else None,
        role=role,
    )
    db.add(user)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("Email or roll number already registered")
    db.refresh(user)
    logger.info("Created user %s (%s, %s)", user.user_id, user.email, user.role.value)
    return user


def list_users(db: Session) -> list[User]:
    """Every non-admin account, newest first."""
    return (
        db.query(User)
        .filter(User.role != UserRole.admin)
        .order_by(User.created_at.desc())
        .all()
    )


def get_user_details(db: Session, user_id: str) -> dict[str, Any]:
    """Profile with joined clubs, led club, pending requests and event history."""
    user = get_user(db, user_id)
    joined = (
        db.query(Club)
        .join(ClubMember, ClubMember.club_id == Club.club_id)
        .filter(ClubMember.user_id == user_id)
        .order_by(Club.name)
        .all()
    )
    led = db.query(Club).filter(Club.leader_id == user_id).first()
    pending = (
        db.query(MembershipRequest)
        .filter(MembershipRequest.student_id == user_id, MembershipRequest.status == RequestStatus.pending)
        .order_by(MembershipRequest.requested_at.desc())
        .all()
    )
    registrations = (
        db.query(Registration)
        .join(Event, Event.event_id == Registration.event_id)
        .filter(Registration.student_id == user_id)
        .order_by(Event.date)
        .all()
    )
    today = campus_today()
    return {
        "user_id": user.user_id,
        "name": user.name,
        "email": user.email,
        "roll_number": user.roll_number,
        "role": user.role,
        "is_active": user.is_active,
        "created_at": user.created_at,
        "joined_clubs": joined,
        "led_club": led,
        "pending_requests": pending,
        "upcoming_events": [r.event for r in registrations if not r.attended and r.event.date >= today],
        "attended_events": [r.event for r in registrations if r.attended],
    }


def toggle_active(db: Session, admin_id: str, user_id: str) -> User:
    """Block or unblock an account. Blocked users are refused on every authenticated route."""
    user = get_user(db, user_id)
    if user.user_id == admin_id:
        raise ValidationError("You cannot block your own account")
    user.is_active = not user.is_active
    db.commit()
    db.refresh(user)
    logger.info("User %s %s by admin %s", user_id, "unblocked" if user.is_active else "blocked", admin_id)
    return user


def delete_user(db: Session, admin_id: str, user_id: str, blob_store) -> None:
    """Remove an account together with its memberships, requests and registrations.

    Users who lead a club, created events or made payments keep a history
    other rows depend on; they can be blocked but not deleted.
    """
    user = get_user(db, user_id)
    if user.user_id == admin_id:
        raise AuthorizationError("Cannot delete your own account")
    if user.role == UserRole.admin:
        admins = db.query(func.count(User.user_id)).filter(User.role == UserRole.admin).scalar()
        if admins <= 1:
            raise AuthorizationError("Cannot delete the last admin")
    if db.query(Club.club_id).filter(Club.leader_id == user_id).first():
        raise ConflictError("User leads a club - change the club's leader first")
    if (
        db.query(Event.event_id).filter(Event.created_by == user_id).first()
        or db.query(Payment.payment_id).filter(Payment.student_id == user_id).first()
    ):
        raise ConflictError("User has event or payment history - block the account instead")

    qr_urls = [row[0] for row in db.query(Registration.qr_code).filter(Registration.student_id == user_id).all()]

    db.query(EventAttendance).filter(EventAttendance.student_id == user_id).delete(synchronize_session=False)
    db.query(EventAttendance).filter(EventAttendance.marked_by == user_id).update(
        {EventAttendance.marked_by: None}, synchronize_session=False,
    )
    db.query(Registration).filter(Registration.student_id == user_id).delete(synchronize_session=False)
    db.query(MembershipRequest).filter(MembershipRequest.student_id == user_id).delete(synchronize_session=False)
    db.query(MembershipRequest).filter(MembershipRequest.reviewed_by == user_id).update(
        {MembershipRequest.reviewed_by: None}, synchronize_session=False,
    )
    db.query(ClubMember).filter(ClubMember.user_id == user_id).delete(synchronize_session=False)
    db.delete(user)
    db.commit()

    for url in qr_urls:
        blob_store.delete(url)
    logger.info("User %s deleted by admin %s (%d registrations removed)", user_id, admin_id, len(qr_urls))
