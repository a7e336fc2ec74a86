"""Pydantic schemas for Registrations and attendance scans."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from clubhub.schemas.event import EventOut


class RegistrationOut(BaseModel):
    registration_id: str
    event_id: str
    student_id: str
    qr_code: str
    qr_payload: str
    registered_at: datetime
    attended: bool
    attended_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class RegistrationWithEventOut(RegistrationOut):
    event: EventOut


class ScanRequest(BaseModel):
    qr_data: str


class ScanResult(BaseModel):
    registration_id: str
    event_id: str
    event_title: str
    student_id: str
    attended_at: datetime
    attended_count: int


class AttendedStudentOut(BaseModel):
    student_id: str
    name: str
    email: str
    roll_number: Optional[str] = None
    marked_at: datetime


class AttendanceReportOut(BaseModel):
    event_id: str
    title: str
    attended_count: int
    students: list[AttendedStudentOut] = []
