"""
Derived counters for events: confirmed participation requests and views.

Counters are computed for a whole batch at once: one grouped count query and
one stats collector call, issued concurrently. A missing or failing stats
collector means zero views; a failing count query fails the request.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FuturesTimeoutError
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence

import httpx

from event_explorer.core.clock import utcnow
from event_explorer.core.config import ENRICHMENT_WAIT_SECONDS
from event_explorer.models.events import Event
from event_explorer.services.participation import ParticipationCounter
from event_explorer.services.stats_client import StatsClient

logger = logging.getLogger(__name__)

EVENT_URI_PREFIX = "/events/"


@dataclass(frozen=True)
class EnrichedEvent:
    event: Event
    confirmed_requests: int
    views: int

    @property
    def id(self) -> int:
        return self.event.id


def event_uri(event_id: int) -> str:
    return f"{EVENT_URI_PREFIX}{event_id}"


def parse_event_uri(uri: str) -> Optional[int]:
    if not uri.startswith(EVENT_URI_PREFIX):
        return None
    tail = uri[len(EVENT_URI_PREFIX):]
    return int(tail) if tail.isascii() and tail.isdigit() else None


def fetch_views(
    stats: StatsClient,
    event_ids: Sequence[int],
    start: datetime,
    end: Optional[datetime] = None,
) -> Dict[int, int]:
    """Unique views per event id; empty when the collector is unavailable."""
    uris = [event_uri(event_id) for event_id in event_ids]
    try:
        hits = stats.get_hits(start, end or utcnow(), uris, unique=True)
    except (httpx.HTTPError, ValueError) as e:
        logger.warning("Stats collector unavailable, reporting zero views: %s", e)
        return {}

    views: Dict[int, int] = {}
    for item in hits:
        event_id = parse_event_uri(item.uri)
        if event_id is None:
            logger.debug("Ignoring stats for unexpected uri %s", item.uri)
            continue
        views[event_id] = views.get(event_id, 0) + item.hits
    return views


def enrich_events(
    events: Iterable[Event],
    *,
    counter: ParticipationCounter,
    stats: StatsClient,
    wait_seconds: float = ENRICHMENT_WAIT_SECONDS,
) -> List[EnrichedEvent]:
    """Attach counters to `events`, keeping their order."""
    events = list(events)
    if not events:
        return []

    # Plain values only cross into the worker thread, never the ORM objects
    event_ids = [event.id for event in events]
    start = min(event.created_on for event in events)

    executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="event-views")
    try:
        views_future = executor.submit(fetch_views, stats, event_ids, start)
        confirmed = counter.count_confirmed(event_ids)
        try:
            views = views_future.result(timeout=wait_seconds)
        except FuturesTimeoutError:
            logger.warning("Stats collector did not answer in %.1fs, reporting zero views", wait_seconds)
            views = {}
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    return [
        EnrichedEvent(
            event=event,
            confirmed_requests=confirmed.get(event.id, 0),
            views=views.get(event.id, 0),
        )
        for event in events
    ]
