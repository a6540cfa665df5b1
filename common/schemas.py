"""Pydantic schemas shared across the microservices."""
from __future__ import annotations

import datetime as dt
from typing import List, Optional

from pydantic import AliasChoices, BaseModel, EmailStr, Field, model_validator

from .models import BookingStatus, ProgramType, RoleEnum, SessionSlot
from .scheduling import schedule_from_fields


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserBase(BaseModel):
    name: str = Field(..., max_length=100)
    username: str = Field(..., max_length=50)
    email: EmailStr
    role: RoleEnum = RoleEnum.USER


class UserCreate(UserBase):
    password: str = Field(..., min_length=8)


class UserRead(UserBase):
    id: int
    created_at: dt.datetime

    model_config = {"from_attributes": True}


class VenueBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    description: str = ""
    capacity: int = Field(..., ge=1)
    image_url: str = ""
    amenities: List[str] = Field(default_factory=list)
    location: str = Field(..., min_length=1)


class VenueCreate(VenueBase):
    pass


class VenueUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    description: Optional[str] = None
    capacity: Optional[int] = Field(None, ge=1)
    image_url: Optional[str] = None
    amenities: Optional[List[str]] = None
    location: Optional[str] = None


class VenueRead(VenueBase):
    id: str

    model_config = {"from_attributes": True}


class BookingCreate(BaseModel):
    """Reservation request: a session or a start/end pair, not necessarily both."""

    venue_id: str = Field(..., min_length=1, validation_alias=AliasChoices("venue_id", "venueId"))
    date: dt.date
    purpose: str = Field(..., min_length=1, max_length=1000)
    program_type: Optional[ProgramType] = Field(None, validation_alias=AliasChoices("program_type", "programType"))
    session: Optional[SessionSlot] = None
    start_time: Optional[str] = Field(None, validation_alias=AliasChoices("start_time", "startTime"))
    end_time: Optional[str] = Field(None, validation_alias=AliasChoices("end_time", "endTime"))

    @model_validator(mode="after")
    def check_schedule(self) -> "BookingCreate":
        schedule_from_fields(self.session, self.start_time, self.end_time)
        return self


class BookingRead(BaseModel):
    id: str
    venue_id: str
    user_id: Optional[int]
    user_name: str
    date: dt.date
    session: Optional[SessionSlot] = None
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    purpose: str
    program_type: Optional[ProgramType] = None
    status: BookingStatus
    created_at: dt.datetime

    model_config = {"from_attributes": True}


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class AvailabilityRead(BaseModel):
    venue_id: str
    date: dt.date
    start: str
    end: str
    available: bool


class ScheduleEntry(BaseModel):
    booking_id: str
    start: str
    end: str
    status: BookingStatus
    session: Optional[SessionSlot] = None


class VenueSchedule(BaseModel):
    venue_id: str
    date: dt.date
    occupied: List[ScheduleEntry]
