"""Club and membership service.

Supplies the membership predicate used to gate club-only events and the
leader lookup used by every leader-scoped operation.
"""
import logging
from typing import Any, Optional

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from clubhub.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from clubhub.models.club import Club, ClubMember, MembershipRequest, RequestStatus
from clubhub.models.event import Event, EventStatus
from clubhub.models.registration import Registration
from clubhub.models.user import User, UserRole
from clubhub.services.clock import campus_today, utcnow

logger = logging.getLogger(__name__)


def get_club(db: Session, club_id: str) -> Club:
    club = db.query(Club).filter(Club.club_id == club_id).first()
    if not club:
        raise NotFoundError("Club not found")
    return club


def is_member(db: Session, club_id: str, user_id: str) -> bool:
    return db.get(ClubMember, (club_id, user_id)) is not None


def member_club_ids(db: Session, user_id: str) -> list[str]:
    return [row[0] for row in db.query(ClubMember.club_id).filter(ClubMember.user_id == user_id).all()]


def club_led_by(db: Session, leader_id: str) -> Optional[Club]:
    return db.query(Club).filter(Club.leader_id == leader_id).first()


def _add_member(db: Session, club_id: str, user_id: str) -> None:
    # Set semantics: adding an existing member is a no-op
    if not is_member(db, club_id, user_id):
        db.add(ClubMember(club_id=club_id, user_id=user_id))


def create_club(db: Session, name: str, description: str) -> Club:
    if db.query(Club).filter(Club.name == name).first():
        raise ConflictError(f"Club '{name}' already exists")
    club = Club(name=name, description=description)
    db.add(club)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError(f"Club '{name}' already exists")
    db.refresh(club)
    logger.info("Created club '%s' (%s)", club.name, club.club_id)
    return club


def assign_leader(db: Session, club_id: str, user_id: str) -> Club:
    """Promote a student to leader of a club that has none."""
    club = get_club(db, club_id)
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    if user.role != UserRole.student:
        raise ValidationError("Only a student can be promoted to club leader")
    if club.leader_id is not None:
        raise ConflictError("Club already has a leader")

    user.role = UserRole.leader
    club.leader_id = user.user_id
    _add_member(db, club.club_id, user.user_id)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User already leads another club")
    db.refresh(club)
    logger.info("Assigned user %s as leader of club %s", user_id, club_id)
    return club


def request_join(db: Session, club_id: str, student_id: str, reason: Optional[str] = None) -> MembershipRequest:
    get_club(db, club_id)
    if is_member(db, club_id, student_id):
        raise ConflictError("You are already a member")

    pending = (
        db.query(MembershipRequest)
        .filter(
            MembershipRequest.club_id == club_id,
            MembershipRequest.student_id == student_id,
            MembershipRequest.status == RequestStatus.pending,
        )
        .first()
    )
    if pending:
        raise ConflictError("Request already pending")

    request = MembershipRequest(club_id=club_id, student_id=student_id, reason=reason)
    db.add(request)
    db.commit()
    db.refresh(request)
    logger.info("Join request %s: student %s -> club %s", request.request_id, student_id, club_id)
    return request


def list_pending_requests(db: Session, leader_id: str) -> list[MembershipRequest]:
    club = club_led_by(db, leader_id)
    if not club:
        raise AuthorizationError("You are not a leader of any club")
    return (
        db.query(MembershipRequest)
        .filter(MembershipRequest.club_id == club.club_id, MembershipRequest.status == RequestStatus.pending)
        .order_by(MembershipRequest.requested_at.desc())
        .all()
    )


def review_request(db: Session, request_id: str, leader_id: str, approve: bool) -> MembershipRequest:
    request = db.query(MembershipRequest).filter(MembershipRequest.request_id == request_id).first()
    if not request:
        raise NotFoundError("Request not found")

    club = get_club(db, request.club_id)
    if club.leader_id != leader_id:
        raise AuthorizationError("Not authorized for this club")
    if request.status != RequestStatus.pending:
        raise ConflictError(f"Request is already {request.status.value}")

    request.status = RequestStatus.approved if approve else RequestStatus.rejected
    request.reviewed_at = utcnow()
    request.reviewed_by = leader_id
    if approve:
        _add_member(db, club.club_id, request.student_id)
    db.commit()
    db.refresh(request)
    logger.info("Join request %s %s by leader %s", request_id, request.status.value, leader_id)
    return request


def delete_club(db: Session, club_id: str) -> None:
    """Delete a club with no events; its leader goes back to being a student."""
    club = get_club(db, club_id)
    if db.query(Event.event_id).filter(Event.club_id == club_id).first():
        raise ConflictError("Club has events and cannot be deleted")
    if club.leader_id:
        leader = db.query(User).filter(User.user_id == club.leader_id).first()
        if leader is not None:
            leader.role = UserRole.student
    db.query(MembershipRequest).filter(MembershipRequest.club_id == club_id).delete(synchronize_session=False)
    db.delete(club)
    db.commit()
    logger.info("Deleted club %s ('%s')", club_id, club.name)


def remove_member(db: Session, club_id: str, user_id: str, caller_id: str, caller_role: UserRole) -> None:
    """Remove a member. Allowed for admins and the club's own leader."""
    club = get_club(db, club_id)
    if caller_role != UserRole.admin and club.leader_id != caller_id:
        raise AuthorizationError("Not authorized for this club")
    if club.leader_id == user_id:
        raise ConflictError("The club leader cannot be removed; change their role first")
    membership = db.get(ClubMember, (club_id, user_id))
    if membership is None:
        raise NotFoundError("User is not a member of this club")
    db.delete(membership)
    db.commit()
    logger.info("Removed user %s from club %s (by %s)", user_id, club_id, caller_id)


def change_member_role(db: Session, club_id: str, user_id: str, role: str) -> Club:
    """Make a member the club's leader (replacing any current one) or demote the leader to member."""
    club = get_club(db, club_id)
    user = db.query(User).filter(User.user_id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    if not is_member(db, club_id, user_id):
        raise ValidationError("User is not a member of this club")

    if role == "leader":
        if club.leader_id == user_id:
            raise ConflictError("User is already this club's leader")
        if user.role == UserRole.leader:
            raise ConflictError("User already leads another club")
        if user.role != UserRole.student:
            raise ValidationError("Only a student can be promoted to club leader")
        if club.leader_id:
            previous = db.query(User).filter(User.user_id == club.leader_id).first()
            if previous is not None:
                previous.role = UserRole.student
        club.leader_id = user.user_id
        user.role = UserRole.leader
    else:
        if club.leader_id != user_id:
            raise ValidationError("User is not this club's leader")
        club.leader_id = None
        user.role = UserRole.student

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConflictError("User already leads another club")
    db.refresh(club)
    logger.info("User %s is now %s of club %s", user_id, role, club_id)
    return club


def browse_clubs(db: Session, student_id: str) -> list[dict[str, Any]]:
    """All clubs with member counts and the student's own membership state."""
    member_of = set(member_club_ids(db, student_id))
    pending = {
        row[0]
        for row in db.query(MembershipRequest.club_id).filter(
            MembershipRequest.student_id == student_id,
            MembershipRequest.status == RequestStatus.pending,
        )
    }
    counts = dict(
        db.query(ClubMember.club_id, func.count(ClubMember.user_id)).group_by(ClubMember.club_id).all()
    )
    rows = (
        db.query(Club, User.name)
        .outerjoin(User, User.user_id == Club.leader_id)
        .order_by(Club.name)
        .all()
    )
    return [
        {
            "club_id": club.club_id,
            "name": club.name,
            "description": club.description,
            "leader_id": club.leader_id,
            "leader_name": leader_name,
            "member_count": counts.get(club.club_id, 0),
            "is_member": club.club_id in member_of,
            "has_pending": club.club_id in pending,
        }
        for club, leader_name in rows
    ]


def leader_dashboard(db: Session, leader_id: str) -> dict[str, Any]:
    club = club_led_by(db, leader_id)
    if not club:
        raise AuthorizationError("You are not a leader of any club")

    def _events(status: EventStatus) -> int:
        return (
            db.query(func.count(Event.event_id))
            .filter(Event.club_id == club.club_id, Event.status == status)
            .scalar()
        )

    registrations = (
        db.query(func.count(Registration.registration_id))
        .join(Event, Event.event_id == Registration.event_id)
        .filter(Event.club_id == club.club_id)
    )
    upcoming = (
        db.query(Event)
        .filter(
            Event.club_id == club.club_id,
            Event.status == EventStatus.approved,
            Event.date >= campus_today(),
        )
        .order_by(Event.date)
        .limit(5)
        .all()
    )
    return {
        "club": club,
        "member_count": db.query(func.count(ClubMember.user_id)).filter(ClubMember.club_id == club.club_id).scalar(),
        "approved_events": _events(EventStatus.approved),
        "pending_events": _events(EventStatus.pending),
        "pending_requests": (
            db.query(func.count(MembershipRequest.request_id))
            .filter(MembershipRequest.club_id == club.club_id, MembershipRequest.status == RequestStatus.pending)
            .scalar()
        ),
        "total_registrations": registrations.scalar(),
        "attended_registrations": registrations.filter(Registration.attended == True).scalar(),  # noqa: E712
        "upcoming_events": upcoming,
    }
