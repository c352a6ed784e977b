from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from event_explorer.database.db import get_db
from event_explorer.models.events import EventState
from event_explorer.schemas.events import EventFullOut, UpdateEventAdminIn
from event_explorer.services import events as event_service

router = APIRouter(prefix="/admin/events", tags=["admin"])


@router.get("", response_model=List[EventFullOut])
def search_events(
    users: Optional[List[int]] = Query(None),
    states: Optional[List[EventState]] = Query(None),
    categories: Optional[List[int]] = Query(None),
    range_start: Optional[datetime] = None,
    range_end: Optional[datetime] = None,
    from_: int = Query(0, ge=0, alias="from"),
    size: int = Query(10, ge=1),
    db: Session = Depends(get_db),
):
    events = event_service.search_events_admin(
        db,
        users=users,
        states=states,
        categories=categories,
        range_start=range_start,
        range_end=range_end,
        from_=from_,
        size=size,
    )
    return [EventFullOut.from_enriched(item) for item in events]


@router.patch("/{event_id}", response_model=EventFullOut)
def update_event(event_id: int, payload: UpdateEventAdminIn, db: Session = Depends(get_db)):
    return EventFullOut.from_enriched(event_service.update_event_by_admin(db, event_id=event_id, payload=payload))
