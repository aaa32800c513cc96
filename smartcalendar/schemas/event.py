from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field, field_validator, model_validator

from smartcalendar.utils.timezone import to_utc_naive


class TagRead(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


# Shared properties
class EventBase(BaseModel):
    title: str = Field(..., min_length=1)
    start_date: datetime
    end_date: Optional[datetime] = None
    description: Optional[str] = None
    location: Optional[str] = None
    reminder_minutes_before: Optional[int] = Field(None, ge=0)

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc_naive(v)


# Properties to receive on event creation
class EventCreate(EventBase):
    user_id: str
    google_event_id: Optional[str] = None
    tags: List[str] = []

    @model_validator(mode="after")
    def check_dates(self) -> "EventCreate":
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


# Properties to receive on event update; omitted fields are left unchanged
class EventUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1)
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    description: Optional[str] = None
    location: Optional[str] = None
    reminder_minutes_before: Optional[int] = Field(None, ge=0)
    tags: Optional[List[str]] = None

    @field_validator("start_date", "end_date")
    @classmethod
    def normalize_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        return to_utc_naive(v)


# Properties to return to client
class EventRead(EventBase):
    id: int
    user_id: str
    reminder_sent: bool
    google_event_id: Optional[str] = None
    tags: List[TagRead] = []
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
