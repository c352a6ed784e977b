"""
Event search criteria.

Every search builds a new, frozen `EventFilter` from its parameters; nothing is
accumulated between calls. The store adapter translates a filter into a query.
"""
from datetime import datetime
from typing import Iterable, Optional, Tuple

from pydantic import BaseModel

from event_explorer.core.clock import to_naive_utc, utcnow
from event_explorer.core.errors import InvalidArgumentError
from event_explorer.models.events import EventState


class EventFilter(BaseModel):
    """Optional, conjunctive search criteria. Empty values impose no constraint."""

    owner_ids: Tuple[int, ...] = ()
    states: Tuple[EventState, ...] = ()
    category_ids: Tuple[int, ...] = ()
    range_start: Optional[datetime] = None
    range_end: Optional[datetime] = None
    text: Optional[str] = None
    paid: Optional[bool] = None
    only_available: bool = False

    class Config:
        frozen = True


def _ids(values: Optional[Iterable[int]]) -> Tuple[int, ...]:
    return tuple(sorted(set(values))) if values else ()


def _check_range(range_start: Optional[datetime], range_end: Optional[datetime]) -> None:
    if range_start is not None and range_end is not None and range_end < range_start:
        raise InvalidArgumentError("range_end must not be before range_start")


def admin_filter(
    *,
    users: Optional[Iterable[int]] = None,
    states: Optional[Iterable[EventState]] = None,
    categories: Optional[Iterable[int]] = None,
    range_start: Optional[datetime] = None,
    range_end: Optional[datetime] = None,
) -> EventFilter:
    """Criteria for the administrator search. A single date bound leaves the other side open."""
    range_start, range_end = to_naive_utc(range_start), to_naive_utc(range_end)
    _check_range(range_start, range_end)
    return EventFilter(
        owner_ids=_ids(users),
        states=tuple(dict.fromkeys(EventState(s) for s in states)) if states else (),
        category_ids=_ids(categories),
        range_start=range_start,
        range_end=range_end,
    )


def public_filter(
    *,
    text: Optional[str] = None,
    categories: Optional[Iterable[int]] = None,
    paid: Optional[bool] = None,
    range_start: Optional[datetime] = None,
    range_end: Optional[datetime] = None,
    only_available: bool = False,
    owner_ids: Optional[Iterable[int]] = None,
    now: Optional[datetime] = None,
) -> EventFilter:
    """
    Criteria for the public searches.

    Only published events are ever matched, whatever else is asked for.
    Without a lower date bound only upcoming events are returned.
    """
    range_start, range_end = to_naive_utc(range_start), to_naive_utc(range_end)
    _check_range(range_start, range_end)
    if range_start is None:
        range_start = now or utcnow()
    return EventFilter(
        owner_ids=_ids(owner_ids),
        states=(EventState.PUBLISHED,),
        category_ids=_ids(categories),
        range_start=range_start,
        range_end=range_end,
        text=text if text and text.strip() else None,
        paid=paid,
        only_available=bool(only_available),
    )
