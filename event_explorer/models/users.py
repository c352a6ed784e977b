from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from event_explorer.database.db import Base


class User(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(250), nullable=False)
    email: Mapped[str] = mapped_column(String(254), nullable=False, unique=True)


class Subscription(Base):
    """`subscriber` follows the events published by `user`."""

    __tablename__ = "subscriptions"
    __table_args__ = (UniqueConstraint("user_id", "subscriber_id"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    subscriber_id: Mapped[int] = mapped_column(ForeignKey("users.id"), nullable=False, index=True)
    subscribed_on: Mapped[datetime] = mapped_column(DateTime, nullable=False)
