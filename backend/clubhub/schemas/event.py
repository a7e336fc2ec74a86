"""Pydantic schemas for Events."""
from datetime import date, datetime
from typing import Literal, Optional
from fastapi import Form
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel, Field, ValidationError

from clubhub.models.event import EventStatus, EventVisibility


class EventCreate(BaseModel):
    """Form fields of the multipart create request (the poster is a separate file part)."""

    title: str = Field(max_length=100)
    description: str = Field(max_length=2000)
    date: date
    time: str = Field(max_length=50)
    venue: Optional[str] = Field(None, max_length=255)
    visibility: EventVisibility = EventVisibility.club_only
    is_paid: bool = False
    price: float = Field(0, ge=0)
    max_participants: int = Field(100, ge=1)
    registration_deadline: Optional[date] = None

    @classmethod
    def as_form(
        cls,
        title: str = Form(...),
        description: str = Form(...),
        date: date = Form(...),
        time: str = Form(...),
        venue: Optional[str] = Form(None),
        visibility: EventVisibility = Form(EventVisibility.club_only),
        is_paid: bool = Form(False),
        price: float = Form(0),
        max_participants: int = Form(100),
        registration_deadline: Optional[date] = Form(None),
    ) -> "EventCreate":
        """Dependency reading the fields as individual form parts, next to a ``poster`` file part."""
        try:
            return cls(
                title=title,
                description=description,
                date=date,
                time=time,
                venue=venue,
                visibility=visibility,
                is_paid=is_paid,
                price=price,
                max_participants=max_participants,
                registration_deadline=registration_deadline,
            )
        except ValidationError as exc:
            raise RequestValidationError(exc.errors(include_url=False, include_context=False))


class EventReview(BaseModel):
    decision: Literal["approved", "rejected"]


class EventOut(BaseModel):
    event_id: str
    club_id: str
    created_by: str
    title: str
    description: str
    date: date
    time: str
    venue: Optional[str] = None
    visibility: EventVisibility
    status: EventStatus
    is_paid: bool
    price: float
    max_participants: int
    registration_deadline: Optional[date] = None
    poster: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class ReminderRecipientOut(BaseModel):
    student_id: str
    name: str
    email: str


class EventReminderOut(BaseModel):
    event: EventOut
    recipients: list[ReminderRecipientOut] = []
