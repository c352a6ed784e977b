"""
Event use cases: searches, single fetches, creation and updates.

Every read returns events enriched with their confirmed request count and
views. Public searches fetch the whole filtered set, enrich it, then sort and
window it in memory, because views only exist after enrichment.
"""
import logging
from contextlib import contextmanager
from datetime import datetime, timedelta
from typing import Iterable, Iterator, List, Optional

import redis
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from event_explorer.core.clock import utcnow
from event_explorer.core.config import (
    ENRICHMENT_WAIT_SECONDS,
    EVENT_DATE_MIN_LEAD_HOURS,
    EVENT_LOCK_BLOCKING_TIMEOUT_SECONDS,
    EVENT_LOCK_TIMEOUT_SECONDS,
    get_redis_url,
)
from event_explorer.core.errors import DependencyFailureError, EventLockedError, InvalidArgumentError, NotFoundError
from event_explorer.models.categories import Category
from event_explorer.models.events import Event, EventState, Location
from event_explorer.models.users import Subscription, User
from event_explorer.schemas.events import EventSort, NewEventIn, UpdateEventAdminIn, UpdateEventIn, UpdateEventUserIn
from event_explorer.services.enrichment import EnrichedEvent, enrich_events
from event_explorer.services.event_store import EventStore
from event_explorer.services.filters import EventFilter, admin_filter, public_filter
from event_explorer.services.moderation import admin_transition, owner_transition
from event_explorer.services.participation import ParticipationCounter
from event_explorer.services.stats_client import get_stats_client

logger = logging.getLogger(__name__)

PLAIN_FIELDS = ("annotation", "description", "title", "paid", "participant_limit", "request_moderation")


def get_redis_client():
    """Get Redis client for locking."""
    return redis.from_url(get_redis_url(), decode_responses=True)


@contextmanager
def event_lock(event_id: int) -> Iterator[None]:
    """
    Hold the per-event Redis lock while one request rewrites the event.
    Only the read-modify-write runs under it, never the enrichment calls.
    """
    redis_client = get_redis_client()
    lock = redis_client.lock(
        f"event_lock:{event_id}",
        timeout=EVENT_LOCK_TIMEOUT_SECONDS,
        blocking_timeout=EVENT_LOCK_BLOCKING_TIMEOUT_SECONDS,
    )
    try:
        acquired = lock.acquire(blocking=True)
    except redis.exceptions.LockError as e:
        raise EventLockedError("Event is being updated, please try again.") from e
    except redis.exceptions.RedisError as e:
        logger.error("Lock for event id=%s could not be acquired: %s", event_id, e)
        raise DependencyFailureError("Event lock service is unavailable") from e
    if not acquired:
        raise EventLockedError("Event is being updated, please try again.")

    try:
        yield
    finally:
        try:
            lock.release()
        except redis.exceptions.LockNotOwnedError:
            logger.warning("Lock for event id=%s expired before release", event_id)


@contextmanager
def _committing(db: Session) -> Iterator[None]:
    try:
        yield
        db.commit()
    except Exception:
        db.rollback()
        raise


# ---------- Lookups ----------
def _get_user(db: Session, user_id: int) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFoundError(f"User with id={user_id} was not found")
    return user


def _get_category(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise NotFoundError(f"Category with id={category_id} was not found")
    return category


def get_or_create_location(db: Session, lat: float, lon: float) -> Location:
    """Reuse the location with exactly these coordinates, or insert it."""
    stmt = select(Location).where(Location.lat == lat, Location.lon == lon)
    location = db.scalars(stmt).first()
    if location is not None:
        return location

    location = Location(lat=lat, lon=lon)
    try:
        with db.begin_nested():
            db.add(location)
    except IntegrityError:
        # Inserted by a concurrent request in the meantime
        location = db.scalars(stmt).one()
    return location


def followed_user_ids(db: Session, subscriber_id: int) -> List[int]:
    stmt = select(Subscription.user_id).where(Subscription.subscriber_id == subscriber_id)
    return list(db.scalars(stmt))


# ---------- Enrichment, sorting, windowing ----------
def _enrich(db: Session, events: Iterable[Event]) -> List[EnrichedEvent]:
    with get_stats_client() as stats:
        return enrich_events(
            events,
            counter=ParticipationCounter(db),
            stats=stats,
            wait_seconds=ENRICHMENT_WAIT_SECONDS,
        )


def _check_window(from_: int, size: int) -> None:
    if from_ < 0:
        raise InvalidArgumentError("from must not be negative")
    if size < 1:
        raise InvalidArgumentError("size must be positive")


def sort_and_window(
    items: List[EnrichedEvent], sort: Optional[EventSort], from_: int, size: int
) -> List[EnrichedEvent]:
    """Sort enriched events (ties broken by id) and cut the `from_`/`size` window."""
    if sort is EventSort.EVENT_DATE:
        items = sorted(items, key=lambda item: (item.event.event_date, item.id))
    elif sort is EventSort.VIEWS:
        items = sorted(items, key=lambda item: (-item.views, item.id))
    return items[from_:from_ + size]


# ---------- Administrator ----------
def search_events_admin(
    db: Session,
    *,
    users: Optional[Iterable[int]] = None,
    states: Optional[Iterable[EventState]] = None,
    categories: Optional[Iterable[int]] = None,
    range_start: Optional[datetime] = None,
    range_end: Optional[datetime] = None,
    from_: int = 0,
    size: int = 10,
) -> List[EnrichedEvent]:
    _check_window(from_, size)
    event_filter = admin_filter(
        users=users,
        states=states,
        categories=categories,
        range_start=range_start,
        range_end=range_end,
    )
    events = EventStore(db).find_matching(event_filter, offset=from_, limit=size)
    return _enrich(db, events)


def update_event_by_admin(db: Session, *, event_id: int, payload: UpdateEventAdminIn) -> EnrichedEvent:
    with event_lock(event_id):
        with _committing(db):
            event = EventStore(db).find_by_id_for_update(event_id)
            if event is None:
                raise NotFoundError(f"Event with id={event_id} was not found")
            now = utcnow()
            new_state = admin_transition(event.state, payload.state_action)
            _apply_changes(db, event, payload, now)
            if new_state is EventState.PUBLISHED and event.state is not EventState.PUBLISHED:
                event.published_on = now
            event.state = new_state
    logger.info("Administrator updated event id=%s, state=%s", event_id, event.state.value)
    return _enrich(db, [event])[0]


# ---------- Initiator ----------
def get_user_events(db: Session, *, user_id: int, from_: int = 0, size: int = 10) -> List[EnrichedEvent]:
    _check_window(from_, size)
    _get_user(db, user_id)
    events = EventStore(db).find_matching(EventFilter(owner_ids=(user_id,)), offset=from_, limit=size)
    return _enrich(db, events)


def create_event(db: Session, *, user_id: int, payload: NewEventIn) -> EnrichedEvent:
    user = _get_user(db, user_id)
    now = utcnow()
    if payload.event_date < now + timedelta(hours=EVENT_DATE_MIN_LEAD_HOURS):
        raise InvalidArgumentError(
            f"Event date must be at least {EVENT_DATE_MIN_LEAD_HOURS:g} hours in the future"
        )

    with _committing(db):
        event = Event(
            annotation=payload.annotation,
            description=payload.description,
            title=payload.title,
            category=_get_category(db, payload.category),
            location=get_or_create_location(db, payload.location.lat, payload.location.lon),
            initiator=user,
            created_on=now,
            event_date=payload.event_date,
            paid=payload.paid,
            participant_limit=payload.participant_limit,
            request_moderation=payload.request_moderation,
            state=EventState.PENDING,
        )
        EventStore(db).save(event)
    logger.info("User id=%s created event id=%s", user_id, event.id)
    return _enrich(db, [event])[0]


def get_user_event(db: Session, *, user_id: int, event_id: int) -> EnrichedEvent:
    _get_user(db, user_id)
    event = EventStore(db).find_by_owner_and_id(user_id, event_id)
    if event is None:
        raise NotFoundError(f"Event with id={event_id} was not found")
    return _enrich(db, [event])[0]


def update_event_by_user(
    db: Session, *, user_id: int, event_id: int, payload: UpdateEventUserIn
) -> EnrichedEvent:
    _get_user(db, user_id)
    with event_lock(event_id):
        with _committing(db):
            event = EventStore(db).find_by_id_for_update(event_id)
            if event is None or event.initiator_id != user_id:
                raise NotFoundError(f"Event with id={event_id} was not found")
            new_state = owner_transition(event.state, payload.state_action)
            _apply_changes(db, event, payload, utcnow())
            event.state = new_state
    logger.info("User id=%s updated event id=%s, state=%s", user_id, event_id, event.state.value)
    return _enrich(db, [event])[0]


def _apply_changes(db: Session, event: Event, payload: UpdateEventIn, now: datetime) -> None:
    if payload.event_date is not None:
        if payload.event_date < now:
            raise InvalidArgumentError("Event date must not be in the past")
        event.event_date = payload.event_date
    if payload.category is not None:
        event.category = _get_category(db, payload.category)
    if payload.location is not None:
        event.location = get_or_create_location(db, payload.location.lat, payload.location.lon)
    for field in PLAIN_FIELDS:
        value = getattr(payload, field)
        if value is not None:
            setattr(event, field, value)


# ---------- Public ----------
def search_published_events(
    db: Session,
    *,
    text: Optional[str] = None,
    categories: Optional[Iterable[int]] = None,
    paid: Optional[bool] = None,
    range_start: Optional[datetime] = None,
    range_end: Optional[datetime] = None,
    only_available: bool = False,
    users: Optional[Iterable[int]] = None,
    sort: Optional[EventSort] = None,
    from_: int = 0,
    size: int = 10,
) -> List[EnrichedEvent]:
    _check_window(from_, size)
    event_filter = public_filter(
        text=text,
        categories=categories,
        paid=paid,
        range_start=range_start,
        range_end=range_end,
        only_available=only_available,
        owner_ids=users,
    )
    events = EventStore(db).find_matching(event_filter)
    return sort_and_window(_enrich(db, events), sort, from_, size)


def search_followed_events(
    db: Session,
    *,
    subscriber_id: int,
    text: Optional[str] = None,
    categories: Optional[Iterable[int]] = None,
    paid: Optional[bool] = None,
    range_start: Optional[datetime] = None,
    range_end: Optional[datetime] = None,
    only_available: bool = False,
    sort: Optional[EventSort] = None,
    from_: int = 0,
    size: int = 10,
) -> List[EnrichedEvent]:
    """Public search restricted to the initiators `subscriber_id` follows."""
    _get_user(db, subscriber_id)
    # Bad arguments are rejected even when there is nothing to search
    _check_window(from_, size)
    public_filter(range_start=range_start, range_end=range_end)
    followed = followed_user_ids(db, subscriber_id)
    if not followed:
        return []
    return search_published_events(
        db,
        text=text,
        categories=categories,
        paid=paid,
        range_start=range_start,
        range_end=range_end,
        only_available=only_available,
        users=followed,
        sort=sort,
        from_=from_,
        size=size,
    )


def get_published_event(db: Session, *, event_id: int) -> EnrichedEvent:
    event = EventStore(db).find_published_by_id(event_id)
    if event is None:
        raise NotFoundError(f"Event with id={event_id} was not found")
    return _enrich(db, [event])[0]


def get_event(db: Session, *, event_id: int) -> EnrichedEvent:
    event = EventStore(db).find_by_id(event_id)
    if event is None:
        raise NotFoundError(f"Event with id={event_id} was not found")
    return _enrich(db, [event])[0]
