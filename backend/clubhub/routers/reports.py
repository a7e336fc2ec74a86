"""Dashboard report routes."""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from clubhub.database import get_db
from clubhub.identity import Identity, require_admin, require_student
from clubhub.schemas.report import AdminStatsOut, StudentStatsOut
from clubhub.services import report_service

router = APIRouter()


@router.get("/admin", response_model=AdminStatsOut)
def admin_stats(
    time_range: str = Query("all_time"),
    start_date: Optional[date] = Query(None),
    end_date: Optional[date] = Query(None),
    club_id: Optional[str] = Query(None),
    _: Identity = Depends(require_admin),
    db: Session = Depends(get_db),
):
    """Campus totals, optionally narrowed to a time range and one club."""
    return report_service.admin_stats(db, time_range, start_date, end_date, club_id)


@router.get("/student", response_model=StudentStatsOut)
def student_stats(identity: Identity = Depends(require_student), db: Session = Depends(get_db)):
    return report_service.student_stats(db, identity.user_id)
