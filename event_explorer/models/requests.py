import enum
from datetime import datetime

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from event_explorer.database.db import Base
from event_explorer.models.events import Event


class RequestStatus(str, enum.Enum):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    REJECTED = "REJECTED"
    CANCELED = "CANCELED"


class ParticipationRequest(Base):
    __tablename__ = "requests"
    __table_args__ = (UniqueConstraint("event_id", "requester_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    event_id: Mapped[int] = mapped_column(ForeignKey("events.id"), nullable=False, index=True)
    requester_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False)
    status: Mapped[RequestStatus] = mapped_column(
        Enum(RequestStatus, native_enum=False, length=16), nullable=False, default=RequestStatus.PENDING
    )
    created: Mapped[datetime] = mapped_column(DateTime, nullable=False)

    event: Mapped[Event] = relationship()
