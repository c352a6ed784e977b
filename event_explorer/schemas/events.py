import enum
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator

from event_explorer.core.clock import to_naive_utc
from event_explorer.models.events import EventState
from event_explorer.services.moderation import AdminStateAction, UserStateAction


class EventSort(str, enum.Enum):
    EVENT_DATE = "EVENT_DATE"
    VIEWS = "VIEWS"


# ---------- Nested ----------
class LocationIn(BaseModel):
    lat: float = Field(ge=-90, le=90)
    lon: float = Field(ge=-180, le=180)


class LocationOut(BaseModel):
    lat: float
    lon: float

    class Config:
        from_attributes = True


class CategoryOut(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


class UserShortOut(BaseModel):
    id: int
    name: str

    class Config:
        from_attributes = True


# ---------- Commands ----------
class NewEventIn(BaseModel):
    annotation: str = Field(min_length=20, max_length=2000)
    description: str = Field(min_length=20, max_length=7000)
    title: str = Field(min_length=3, max_length=120)
    category: int = Field(ge=1)
    location: LocationIn
    event_date: datetime
    paid: bool = False
    participant_limit: int = Field(default=0, ge=0)
    request_moderation: bool = True

    @field_validator("event_date")
    @classmethod
    def _naive_utc(cls, value: datetime) -> datetime:
        return to_naive_utc(value)


class UpdateEventIn(BaseModel):
    """Field edits shared by the administrator and initiator update paths."""

    annotation: Optional[str] = Field(None, min_length=20, max_length=2000)
    description: Optional[str] = Field(None, min_length=20, max_length=7000)
    title: Optional[str] = Field(None, min_length=3, max_length=120)
    category: Optional[int] = Field(None, ge=1)
    location: Optional[LocationIn] = None
    event_date: Optional[datetime] = None
    paid: Optional[bool] = None
    participant_limit: Optional[int] = Field(None, ge=0)
    request_moderation: Optional[bool] = None

    @field_validator("event_date")
    @classmethod
    def _naive_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return to_naive_utc(value)


class UpdateEventAdminIn(UpdateEventIn):
    state_action: Optional[AdminStateAction] = None


class UpdateEventUserIn(UpdateEventIn):
    state_action: Optional[UserStateAction] = None


# ---------- Responses ----------
class EventShortOut(BaseModel):
    id: int
    annotation: str
    title: str
    category: CategoryOut
    initiator: UserShortOut
    event_date: datetime
    paid: bool
    confirmed_requests: int = 0
    views: int = 0

    class Config:
        from_attributes = True

    @classmethod
    def from_enriched(cls, item) -> "EventShortOut":
        return cls.model_validate(item.event).model_copy(
            update={"confirmed_requests": item.confirmed_requests, "views": item.views}
        )


class EventFullOut(EventShortOut):
    description: str
    location: LocationOut
    created_on: datetime
    published_on: Optional[datetime] = None
    participant_limit: int
    request_moderation: bool
    state: EventState
