from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from event_explorer.database.db import get_db
from event_explorer.schemas.events import EventFullOut, EventShortOut, EventSort, NewEventIn, UpdateEventUserIn
from event_explorer.services import events as event_service

router = APIRouter(prefix="/users/{user_id}", tags=["users"])


@router.get("/events", response_model=List[EventShortOut])
def list_events(
    user_id: int,
    from_: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, ge=1),
    db: Session = Depends(get_db),
):
    events = event_service.get_user_events(db, user_id=user_id, from_=from_, size=size)
    return [EventShortOut.from_enriched(item) for item in events]


@router.post("/events", response_model=EventFullOut, status_code=status.HTTP_201_CREATED)
def create_event(user_id: int, payload: NewEventIn, db: Session = Depends(get_db)):
    return EventFullOut.from_enriched(event_service.create_event(db, user_id=user_id, payload=payload))


@router.get("/events/{event_id}", response_model=EventFullOut)
def get_event(user_id: int, event_id: int, db: Session = Depends(get_db)):
    return EventFullOut.from_enriched(event_service.get_user_event(db, user_id=user_id, event_id=event_id))


@router.patch("/events/{event_id}", response_model=EventFullOut)
def update_event(user_id: int, event_id: int, payload: UpdateEventUserIn, db: Session = Depends(get_db)):
    event = event_service.update_event_by_user(db, user_id=user_id, event_id=event_id, payload=payload)
    return EventFullOut.from_enriched(event)


@router.get("/subscriptions/events", response_model=List[EventShortOut])
def search_followed_events(
    user_id: int,
    text: Optional[str] = None,
    categories: Optional[List[int]] = Query(None),
    paid: Optional[bool] = None,
    range_start: Optional[datetime] = None,
    range_end: Optional[datetime] = None,
    only_available: bool = False,
    sort: Optional[EventSort] = None,
    from_: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, ge=1),
    db: Session = Depends(get_db),
):
    events = event_service.search_followed_events(
        db,
        subscriber_id=user_id,
        text=text,
        categories=categories,
        paid=paid,
        range_start=range_start,
        range_end=range_end,
        only_available=only_available,
        sort=sort,
        from_=from_,
        size=size,
    )
    return [EventShortOut.from_enriched(item) for item in events]
