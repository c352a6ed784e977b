"""HTTP client for the view statistics collector."""
import logging
from datetime import datetime
from typing import List, Optional, Sequence

import httpx
from pydantic import TypeAdapter

from event_explorer.core.config import STATS_TIMEOUT_SECONDS, get_stats_server_url
from event_explorer.schemas.stats import EndpointHit, ViewStats

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

VIEW_STATS_LIST = TypeAdapter(List[ViewStats])


class StatsClient:
    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = STATS_TIMEOUT_SECONDS,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self._client = httpx.Client(base_url=base_url, timeout=timeout, transport=transport)

    def __enter__(self) -> "StatsClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def close(self) -> None:
        self._client.close()

    def get_hits(
        self, start: datetime, end: datetime, uris: Sequence[str], unique: bool = False
    ) -> List[ViewStats]:
        """Hit counts per uri between `start` and `end`, optionally one per origin ip."""
        params = {
            "start": start.strftime(DATE_FORMAT),
            "end": end.strftime(DATE_FORMAT),
            "uris": list(uris),
            "unique": "true" if unique else "false",
        }
        response = self._client.get("/stats", params=params)
        response.raise_for_status()
        payload = response.json() if response.content else None
        if not payload:
            return []
        # anything but a list of stats rows raises a ValidationError
        return VIEW_STATS_LIST.validate_python(payload)

    def save_hit(self, hit: EndpointHit) -> None:
        body = hit.model_dump()
        body["timestamp"] = hit.timestamp.strftime(DATE_FORMAT)
        response = self._client.post("/hit", json=body)
        response.raise_for_status()
        logger.debug("Recorded hit %s from %s", hit.uri, hit.ip)


def get_stats_client() -> StatsClient:
    """Get a stats collector client; close it when done."""
    return StatsClient(get_stats_server_url())
