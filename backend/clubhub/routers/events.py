"""Event API routes: delegates to event_service / registration_service for invariant enforcement."""
import logging
from typing import Optional
from fastapi import APIRouter, Depends, File, Query, UploadFile, status
from sqlalchemy.orm import Session

from clubhub.clients.blob_store import get_blob_store
from clubhub.database import get_db
from clubhub.errors import ValidationError
from clubhub.identity import Identity, require_admin, require_leader, require_student
from clubhub.models.event import EventStatus
from clubhub.schemas.event import EventCreate, EventOut, EventReminderOut, EventReview
from clubhub.schemas.registration import RegistrationOut
from clubhub.services import event_service, registration_service

logger = logging.getLogger(__name__)
router = APIRouter()


@router.post("/", response_model=EventOut, status_code=status.HTTP_201_CREATED)
def create_event(
    payload: EventCreate = Depends(EventCreate.as_form),
    poster: Optional[UploadFile] = File(None),
    identity: Identity = Depends(require_leader),
    db: Session = Depends(get_db),
    blob_store=Depends(get_blob_store),
):
    """Create an event in the leader's club; it waits for admin approval."""
    poster_blob = None
    if poster is not None and poster.filename:
        content_type = poster.content_type or ""
        if not content_type.startswith("image/"):
            raise ValidationError("Poster must be an image")
        poster_blob = (poster.file.read(), content_type)

    return event_service.create_event(
        db=db,
        leader_id=identity.user_id,
        club_id=identity.club_id,
        fields=payload.model_dump(),
        blob_store=blob_store,
        poster=poster_blob,
    )


@router.get("/pending", response_model=list[EventOut])
def list_pending_events(_: Identity = Depends(require_admin), db: Session = Depends(get_db)):
    """All events awaiting review, newest first (admin only)."""
    return event_service.list_pending_events(db)


@router.get("/mine", response_model=list[EventOut])
def list_my_events(identity: Identity = Depends(require_leader), db: Session = Depends(get_db)):
    """Events the calling leader created in their club."""
    return event_service.list_club_events(db, identity.user_id, identity.club_id)


@router.get("/upcoming", response_model=list[EventOut])
def list_upcoming_events(identity: Identity = Depends(require_student), db: Session = Depends(get_db)):
    """Approved upcoming events the student can see and has not registered for."""
    return list(event_service.list_eligible_upcoming(db, identity.user_id))


@router.get("/reminders", response_model=list[EventReminderOut])
def event_reminders(
    days: Optional[int] = Query(None, ge=0, le=30),
    _: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Approved events in the reminder window with the registered students still to attend."""
    return event_service.list_reminders(db, days)


@router.get("/{event_id}", response_model=EventOut)
def get_event(event_id: str, db: Session = Depends(get_db)):
    """Fetch a single event by ID."""
    return event_service.get_event(db, event_id)


@router.post("/{event_id}/review", response_model=EventOut)
def review_event(
    event_id: str,
    payload: EventReview,
    identity: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Approve or reject a pending event. A second review is a 409."""
    return event_service.review_event(db, identity.user_id, event_id, EventStatus(payload.decision))


@router.post("/{event_id}/register", response_model=RegistrationOut, status_code=status.HTTP_201_CREATED)
def register_for_event(
    event_id: str,
    identity: Identity = Depends(require_student),
    db: Session = Depends(get_db),
    blob_store=Depends(get_blob_store),
):
    """Register for a free event and receive the attendance QR."""
    return registration_service.register_for_event(db, identity.user_id, event_id, blob_store)
