"""Student registration views."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clubhub.database import get_db
from clubhub.identity import Identity, require_student
from clubhub.schemas.registration import RegistrationWithEventOut
from clubhub.services import registration_service

router = APIRouter()


@router.get("/upcoming", response_model=list[RegistrationWithEventOut])
def registered_upcoming(identity: Identity = Depends(require_student), db: Session = Depends(get_db)):
    """My registrations for events today or later, soonest first, with QR."""
    return registration_service.get_registered_upcoming(db, identity.user_id)


@router.get("/attended", response_model=list[RegistrationWithEventOut])
def attended_history(identity: Identity = Depends(require_student), db: Session = Depends(get_db)):
    """Events I attended, most recent scan first."""
    return registration_service.get_attended_history(db, identity.user_id)
