"""Read-only dashboard aggregates. Every count is derived from the stores.

Admin reports can be narrowed to a time range and to one club. Range
boundaries are campus-local calendar days converted to UTC; events are
bucketed by when they were created and registrations by when they were made.
"""
from datetime import date, datetime, time, timedelta
from typing import Any, Optional

import pytz
from sqlalchemy import func
from sqlalchemy.orm import Session

from clubhub.config import settings
from clubhub.errors import ValidationError
from clubhub.models.club import Club, ClubMember
from clubhub.models.event import Event, EventStatus
from clubhub.models.registration import Registration
from clubhub.models.user import User
from clubhub.services import club_service
from clubhub.services.clock import campus_today

TIME_RANGES = ("all_time", "this_week", "this_month", "this_semester", "this_year", "custom")


def _rate(part: int, whole: int) -> int:
    return round(part * 100 / whole) if whole else 0


def _utc_midnight(day: date) -> datetime:
    tz = pytz.timezone(settings.CAMPUS_TIMEZONE)
    return tz.localize(datetime.combine(day, time.min)).astimezone(pytz.utc)


def report_window(
    time_range: str = "all_time",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
) -> tuple[Optional[datetime], Optional[datetime]]:
    """Half-open UTC interval ``[start, end)`` for a named range; ``(None, None)`` for all time."""
    if time_range not in TIME_RANGES:
        raise ValidationError(f"Unknown time range '{time_range}'")
    if time_range == "all_time":
        return None, None

    today = campus_today()
    if time_range == "custom":
        if start_date is None or end_date is None:
            raise ValidationError("Custom range needs start_date and end_date")
        if start_date > end_date:
            raise ValidationError("start_date must not be after end_date")
        first, last = start_date, end_date
    elif time_range == "this_week":
        first = today - timedelta(days=today.weekday())
        last = first + timedelta(days=6)
    elif time_range == "this_month":
        first = today.replace(day=1)
        last = (first + timedelta(days=32)).replace(day=1) - timedelta(days=1)
    elif time_range == "this_semester":
        # Jan-Jun and Jul-Dec
        first = today.replace(month=1 if today.month <= 6 else 7, day=1)
        last = date(today.year, 6, 30) if today.month <= 6 else date(today.year, 12, 31)
    else:
        first, last = date(today.year, 1, 1), date(today.year, 12, 31)
    return _utc_midnight(first), _utc_midnight(last + timedelta(days=1))


def _within(query, column, window):
    start, end = window
    if start is not None:
        query = query.filter(column >= start, column < end)
    return query


def admin_stats(
    db: Session,
    time_range: str = "all_time",
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    club_id: Optional[str] = None,
) -> dict[str, Any]:
    """Campus totals. User and club totals are never narrowed; event and registration counts are."""
    window = report_window(time_range, start_date, end_date)
    if club_id is not None:
        club_service.get_club(db, club_id)

    events = _within(db.query(func.count(Event.event_id)), Event.created_at, window)
    registrations = _within(
        db.query(func.count(Registration.registration_id)).join(Event, Event.event_id == Registration.event_id),
        Registration.registered_at,
        window,
    )
    if club_id is not None:
        events = events.filter(Event.club_id == club_id)
        registrations = registrations.filter(Event.club_id == club_id)

    total_registrations = registrations.scalar()
    attended_registrations = registrations.filter(Registration.attended == True).scalar()  # noqa: E712
    return {
        "total_users": db.query(func.count(User.user_id)).scalar(),
        "total_clubs": db.query(func.count(Club.club_id)).scalar(),
        "total_events": events.scalar(),
        "pending_events": events.filter(Event.status == EventStatus.pending).scalar(),
        "total_registrations": total_registrations,
        "attended_registrations": attended_registrations,
        "attendance_rate": _rate(attended_registrations, total_registrations),
    }


def student_stats(db: Session, student_id: str) -> dict[str, Any]:
    registered = (
        db.query(func.count(Registration.registration_id))
        .filter(Registration.student_id == student_id)
        .scalar()
    )
    attended = (
        db.query(func.count(Registration.registration_id))
        .filter(Registration.student_id == student_id, Registration.attended == True)  # noqa: E712
        .scalar()
    )
    upcoming = (
        db.query(func.count(Registration.registration_id))
        .join(Event, Event.event_id == Registration.event_id)
        .filter(Registration.student_id == student_id, Event.date >= campus_today())
        .scalar()
    )
    return {
        "my_clubs": db.query(func.count(ClubMember.club_id)).filter(ClubMember.user_id == student_id).scalar(),
        "registered_events": registered,
        "upcoming_events": upcoming,
        "attended_events": attended,
        "attendance_rate": _rate(attended, registered),
    }
