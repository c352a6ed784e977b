import enum
from datetime import datetime
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum, Float, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from event_explorer.database.db import Base
from event_explorer.models.categories import Category
from event_explorer.models.users import User


class EventState(str, enum.Enum):
    PENDING = "PENDING"
    PUBLISHED = "PUBLISHED"
    CANCELED = "CANCELED"


class Location(Base):
    __tablename__ = "locations"
    __table_args__ = (UniqueConstraint("lat", "lon"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    lat: Mapped[float] = mapped_column(Float, nullable=False)
    lon: Mapped[float] = mapped_column(Float, nullable=False)


class Event(Base):
    """
    A user-proposed event.

    Confirmed request counts and views are computed on every read by the
    enrichment pipeline and are never stored here. Equality stays the ORM
    default (one object per primary key per session); use `event_snapshot`
    to compare persisted values.
    """

    __tablename__ = "events"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    annotation: Mapped[str] = mapped_column(String(2000), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    title: Mapped[str] = mapped_column(String(120), nullable=False)
    category_id: Mapped[int] = mapped_column(ForeignKey("categories.id"), nullable=False, index=True)
    location_id: Mapped[int] = mapped_column(ForeignKey("locations.id"), nullable=False)
    initiator_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    created_on: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    event_date: Mapped[datetime] = mapped_column(DateTime, nullable=False, index=True)
    published_on: Mapped[Optional[datetime]] = mapped_column(DateTime, nullable=True)
    paid: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    participant_limit: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    request_moderation: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    state: Mapped[EventState] = mapped_column(
        Enum(EventState, native_enum=False, length=16), nullable=False, default=EventState.PENDING
    )

    category: Mapped[Category] = relationship(lazy="joined")
    location: Mapped[Location] = relationship(lazy="joined")
    initiator: Mapped[User] = relationship(lazy="joined")


def event_snapshot(event: Event) -> dict:
    """Persisted column values of an event, for structural comparisons."""
    return {column.key: getattr(event, column.key) for column in Event.__table__.columns}
