"""Pydantic schemas for Users."""
from __future__ import annotations
from datetime import datetime
from typing import Optional
from pydantic import BaseModel

from clubhub.models.user import UserRole
from clubhub.schemas.club import ClubSummaryOut, MembershipRequestOut
from clubhub.schemas.event import EventOut


class UserCreate(BaseModel):
    """Self-service sign-up; only students may register this way."""

    name: str
    email: str
    roll_number: Optional[str] = None
    role: UserRole = UserRole.student


class AdminCreate(BaseModel):
    name: str
    email: str


class UserOut(BaseModel):
    user_id: str
    name: str
    email: str
    roll_number: Optional[str] = None
    role: UserRole
    is_active: bool = True
    created_at: datetime

    model_config = {"from_attributes": True}


class UserDetailOut(UserOut):
    joined_clubs: list[ClubSummaryOut] = []
    led_club: Optional[ClubSummaryOut] = None
    pending_requests: list[MembershipRequestOut] = []
    upcoming_events: list[EventOut] = []
    attended_events: list[EventOut] = []
