from typing import List, Optional

from sqlalchemy import ColumnElement, and_, func, or_, select, true
from sqlalchemy.orm import Session

from event_explorer.models.events import Event, EventState
from event_explorer.models.requests import ParticipationRequest, RequestStatus
from event_explorer.services.filters import EventFilter


def confirmed_requests_subquery():
    """Confirmed request count of the event in the enclosing query."""
    return (
        select(func.count(ParticipationRequest.id))
        .where(
            ParticipationRequest.event_id == Event.id,
            ParticipationRequest.status == RequestStatus.CONFIRMED,
        )
        .correlate(Event)
        .scalar_subquery()
    )


def to_predicate(event_filter: EventFilter) -> ColumnElement[bool]:
    """Translate search criteria into a single SQL boolean expression."""
    clauses = []
    if event_filter.owner_ids:
        clauses.append(Event.initiator_id.in_(event_filter.owner_ids))
    if event_filter.states:
        clauses.append(Event.state.in_(event_filter.states))
    if event_filter.category_ids:
        clauses.append(Event.category_id.in_(event_filter.category_ids))
    if event_filter.range_start is not None:
        clauses.append(Event.event_date >= event_filter.range_start)
    if event_filter.range_end is not None:
        clauses.append(Event.event_date <= event_filter.range_end)
    if event_filter.text:
        clauses.append(
            or_(
                Event.annotation.icontains(event_filter.text, autoescape=True),
                Event.description.icontains(event_filter.text, autoescape=True),
            )
        )
    if event_filter.paid is not None:
        clauses.append(Event.paid == event_filter.paid)
    if event_filter.only_available:
        clauses.append(
            or_(
                Event.participant_limit == 0,
                Event.participant_limit > confirmed_requests_subquery(),
            )
        )
    return and_(true(), *clauses)


class EventStore:
    """Event lookups and writes over a SQLAlchemy session."""

    def __init__(self, db: Session):
        self.db = db

    def find_matching(
        self, event_filter: EventFilter, *, offset: int = 0, limit: Optional[int] = None
    ) -> List[Event]:
        stmt = select(Event).where(to_predicate(event_filter)).order_by(Event.id)
        if offset:
            stmt = stmt.offset(offset)
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self.db.scalars(stmt).unique())

    def find_by_id(self, event_id: int) -> Optional[Event]:
        return self.db.get(Event, event_id)

    def find_by_id_for_update(self, event_id: int) -> Optional[Event]:
        stmt = (
            select(Event)
            .where(Event.id == event_id)
            .with_for_update(of=Event)
            .execution_options(populate_existing=True)
        )
        return self.db.scalars(stmt).unique().first()

    def find_by_owner_and_id(self, owner_id: int, event_id: int) -> Optional[Event]:
        stmt = select(Event).where(Event.id == event_id, Event.initiator_id == owner_id)
        return self.db.scalars(stmt).unique().first()

    def find_published_by_id(self, event_id: int) -> Optional[Event]:
        stmt = select(Event).where(Event.id == event_id, Event.state == EventState.PUBLISHED)
        return self.db.scalars(stmt).unique().first()

    def save(self, event: Event) -> Event:
        self.db.add(event)
        self.db.flush()
        return event
