"""Event lifecycle service.

Responsibilities:
- Creation by a club's leader, always in ``pending`` state
- Poster upload ahead of the insert, so no event references a missing poster
- Single-shot admin review (``pending -> approved | rejected``)
- Visibility-based listing of upcoming events for students
- Reminder lists for events starting soon
"""
import logging
from datetime import date, timedelta
from typing import Any, Iterator, Optional

from sqlalchemy import or_, select, update
from sqlalchemy.orm import Session

from clubhub.config import settings
from clubhub.errors import AuthorizationError, ConflictError, NotFoundError, ValidationError
from clubhub.models.club import Club
from clubhub.models.event import Event, EventStatus, EventVisibility
from clubhub.models.registration import Registration
from clubhub.models.user import User
from clubhub.services import club_service
from clubhub.services.clock import campus_today

logger = logging.getLogger(__name__)

REQUIRED_FIELDS = ("title", "description", "date", "time")


def get_event(db: Session, event_id: str) -> Event:
    event = db.query(Event).filter(Event.event_id == event_id).first()
    if not event:
        raise NotFoundError("Event not found")
    return event


def _validate_fields(fields: dict[str, Any]) -> dict[str, Any]:
    missing = [
        name for name in REQUIRED_FIELDS
        if fields.get(name) is None or (isinstance(fields[name], str) and not fields[name].strip())
    ]
    if missing:
        raise ValidationError(f"Required fields missing: {', '.join(missing)}")

    is_paid = bool(fields.get("is_paid", False))
    price = fields.get("price") or 0
    if price < 0:
        raise ValidationError("Price cannot be negative")
    if is_paid and price <= 0:
        raise ValidationError("A paid event needs a price greater than zero")
    if not is_paid and price > 0:
        raise ValidationError("A free event cannot carry a price; set is_paid")

    max_participants = fields.get("max_participants") or 100
    if max_participants < 1:
        raise ValidationError("Maximum participants must be at least 1")

    deadline: Optional[date] = fields.get("registration_deadline")
    if deadline is not None and deadline > fields["date"]:
        raise ValidationError("Registration deadline cannot be after the event date")

    return {
        "title": fields["title"].strip(),
        "description": fields["description"].strip(),
        "date": fields["date"],
        "time": fields["time"].strip(),
        "venue": (fields.get("venue") or "").strip() or None,
        "visibility": EventVisibility(fields.get("visibility") or EventVisibility.club_only),
        "is_paid": is_paid,
        "price": price if is_paid else 0,
        "max_participants": max_participants,
        "registration_deadline": deadline,
    }


def create_event(
    db: Session,
    leader_id: str,
    club_id: Optional[str],
    fields: dict[str, Any],
    blob_store,
    poster: Optional[tuple[bytes, str]] = None,
) -> Event:
    """Create a pending event in the leader's club.

    ``poster`` is ``(data, content_type)``; it is uploaded before the row is
    written and removed again if the insert fails.
    """
    if not club_id:
        raise AuthorizationError("You are not assigned to any club")
    club = db.query(Club).filter(Club.club_id == club_id).first()
    if not club or club.leader_id != leader_id:
        raise AuthorizationError("Not authorized for this club")

    values = _validate_fields(fields)

    poster_url = None
    if poster is not None:
        data, content_type = poster
        poster_url = blob_store.put(data, content_type, prefix="posters")

    event = Event(
        club_id=club.club_id,
        created_by=leader_id,
        status=EventStatus.pending,
        poster=poster_url,
        **values,
    )
    db.add(event)
    try:
        db.commit()
    except Exception:
        db.rollback()
        if poster_url:
            blob_store.delete(poster_url)
        raise
    db.refresh(event)
    logger.info("Created event '%s' (%s) in club %s by leader %s", event.title, event.event_id, club_id, leader_id)
    return event


def review_event(db: Session, admin_id: str, event_id: str, decision: EventStatus) -> Event:
    """Apply the admin decision to a pending event, exactly once."""
    if decision not in (EventStatus.approved, EventStatus.rejected):
        raise ValidationError("Decision must be 'approved' or 'rejected'")

    get_event(db, event_id)

    # Conditional update: only one reviewer can move the event out of pending
    result = db.execute(
        update(Event)
        .where(Event.event_id == event_id, Event.status == EventStatus.pending)
        .values(status=decision)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        db.rollback()
        current = get_event(db, event_id)
        raise ConflictError(f"Event already processed ({current.status.value})")
    db.commit()

    event = get_event(db, event_id)
    db.refresh(event)
    logger.info("Event %s %s by admin %s", event_id, decision.value, admin_id)
    return event


def list_pending_events(db: Session) -> list[Event]:
    return (
        db.query(Event)
        .filter(Event.status == EventStatus.pending)
        .order_by(Event.created_at.desc())
        .all()
    )


def list_club_events(db: Session, leader_id: str, club_id: Optional[str]) -> list[Event]:
    if not club_id:
        raise AuthorizationError("You are not assigned to any club")
    return (
        db.query(Event)
        .filter(Event.club_id == club_id, Event.created_by == leader_id)
        .order_by(Event.created_at.desc())
        .all()
    )


def is_visible_to(db: Session, event: Event, student_id: str) -> bool:
    if event.visibility == EventVisibility.open_to_all:
        return True
    return club_service.is_member(db, event.club_id, student_id)


def list_eligible_upcoming(db: Session, student_id: str) -> Iterator[Event]:
    """Yield approved, not-yet-past events the student can see and has not registered for."""
    club_ids = club_service.member_club_ids(db, student_id)
    visibility = Event.visibility == EventVisibility.open_to_all
    if club_ids:
        visibility = or_(
            visibility,
            (Event.visibility == EventVisibility.club_only) & Event.club_id.in_(club_ids),
        )

    registered = select(Registration.event_id).where(Registration.student_id == student_id)
    query = (
        db.query(Event)
        .filter(
            Event.status == EventStatus.approved,
            Event.date >= campus_today(),
            visibility,
            Event.event_id.not_in(registered),
        )
        .order_by(Event.date, Event.created_at)
    )
    yield from query.yield_per(100)


def list_reminders(db: Session, days: Optional[int] = None) -> list[dict[str, Any]]:
    """Approved events dated within ``days`` of campus today, each with the students yet to attend."""
    window = settings.REMINDER_WINDOW_DAYS if days is None else days
    today = campus_today()
    events = (
        db.query(Event)
        .filter(
            Event.status == EventStatus.approved,
            Event.date >= today,
            Event.date <= today + timedelta(days=window),
        )
        .order_by(Event.date, Event.created_at)
        .all()
    )
    reminders = []
    for event in events:
        recipients = (
            db.query(User)
            .join(Registration, Registration.student_id == User.user_id)
            .filter(
                Registration.event_id == event.event_id,
                Registration.attended == False,  # noqa: E712
                User.is_active == True,  # noqa: E712
            )
            .order_by(User.name)
            .all()
        )
        reminders.append({
            "event": event,
            "recipients": [
                {"student_id": user.user_id, "name": user.name, "email": user.email}
                for user in recipients
            ],
        })
    logger.info("Reminder run: %d events within %d days of %s", len(reminders), window, today)
    return reminders
