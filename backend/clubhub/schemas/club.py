"""Pydantic schemas for Clubs and membership requests."""
from __future__ import annotations
from datetime import datetime
from typing import Literal, Optional
from pydantic import BaseModel, Field

from clubhub.models.club import RequestStatus
from clubhub.schemas.event import EventOut


class ClubCreate(BaseModel):
    name: str = Field(min_length=1, max_length=150)
    description: str = Field(min_length=1)


class ClubOut(BaseModel):
    club_id: str
    name: str
    description: str
    leader_id: Optional[str] = None
    created_at: datetime
    members: list[ClubMemberOut] = []

    model_config = {"from_attributes": True}


class ClubMemberOut(BaseModel):
    user_id: str
    joined_at: datetime

    model_config = {"from_attributes": True}


class ClubSummaryOut(BaseModel):
    club_id: str
    name: str
    description: str
    leader_id: Optional[str] = None

    model_config = {"from_attributes": True}


class ClubBrowseOut(ClubSummaryOut):
    """A club as a student sees it, with their own membership state."""

    leader_name: Optional[str] = None
    member_count: int
    is_member: bool
    has_pending: bool


class LeaderDashboardOut(BaseModel):
    club: ClubSummaryOut
    member_count: int
    approved_events: int
    pending_events: int
    pending_requests: int
    total_registrations: int
    attended_registrations: int
    upcoming_events: list[EventOut] = []


class MemberRoleChange(BaseModel):
    role: Literal["leader", "member"]


class LeaderAssign(BaseModel):
    user_id: str


class JoinRequestCreate(BaseModel):
    reason: Optional[str] = Field(None, max_length=500)


class MembershipRequestOut(BaseModel):
    request_id: str
    club_id: str
    student_id: str
    reason: Optional[str] = None
    status: RequestStatus
    requested_at: datetime
    reviewed_at: Optional[datetime] = None
    reviewed_by: Optional[str] = None

    model_config = {"from_attributes": True}


class RequestReview(BaseModel):
    action: Literal["approve", "reject"]


# Rebuild ClubOut now that ClubMemberOut is defined
ClubOut.model_rebuild()
