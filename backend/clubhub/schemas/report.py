"""Pydantic schemas for dashboard reports."""
from pydantic import BaseModel


class AdminStatsOut(BaseModel):
    total_users: int
    total_clubs: int
    total_events: int
    pending_events: int
    total_registrations: int
    attended_registrations: int
    attendance_rate: int  # percent


class StudentStatsOut(BaseModel):
    my_clubs: int
    registered_events: int
    upcoming_events: int
    attended_events: int
    attendance_rate: int  # percent
