"""Attendance API routes: QR scan at the door and the leader's attendance list."""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from clubhub.database import get_db
from clubhub.identity import Identity, require_leader
from clubhub.schemas.registration import AttendanceReportOut, ScanRequest, ScanResult
from clubhub.services import registration_service

router = APIRouter()


@router.post("/scan", response_model=ScanResult)
def scan_qr(payload: ScanRequest, identity: Identity = Depends(require_leader), db: Session = Depends(get_db)):
    """Mark attendance from a scanned QR payload (leader of the event's club only)."""
    registration = registration_service.mark_attendance(db, identity.user_id, payload.qr_data)
    return ScanResult(
        registration_id=registration.registration_id,
        event_id=registration.event_id,
        event_title=registration.event.title,
        student_id=registration.student_id,
        attended_at=registration.attended_at,
        attended_count=registration_service.attended_count(db, registration.event_id),
    )


@router.get("/events/{event_id}", response_model=AttendanceReportOut)
def attended_students(event_id: str, identity: Identity = Depends(require_leader), db: Session = Depends(get_db)):
    """Students marked present at one of the leader's events."""
    return registration_service.list_attended_students(db, identity.user_id, event_id)
