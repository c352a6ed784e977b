import contextlib
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from event_explorer.core.clock import utcnow
from event_explorer.database.db import get_db
from event_explorer.schemas.events import EventFullOut, EventShortOut, EventSort
from event_explorer.services import events as event_service
from event_explorer.tasks import record_hit_task

router = APIRouter(prefix="/events", tags=["public"])


def _record_hit(request: Request) -> None:
    # enqueue durable background work to record the view
    client_ip = request.client.host if request.client else "unknown"
    with contextlib.suppress(Exception):
        record_hit_task.delay(request.url.path, client_ip, utcnow().isoformat())


@router.get("", response_model=List[EventShortOut])
def search_events(
    request: Request,
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
    events = event_service.search_published_events(
        db,
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
    _record_hit(request)
    return [EventShortOut.from_enriched(item) for item in events]


@router.get("/{event_id}", response_model=EventFullOut)
def get_event(event_id: int, request: Request, db: Session = Depends(get_db)):
    event = event_service.get_published_event(db, event_id=event_id)
    _record_hit(request)
    return EventFullOut.from_enriched(event)
