from datetime import datetime

import httpx

from event_explorer.core.celery_config import celery_app
from event_explorer.core.config import STATS_APP_NAME
from event_explorer.schemas.stats import EndpointHit
from event_explorer.services.stats_client import get_stats_client


@celery_app.task(bind=True, autoretry_for=(httpx.HTTPError,), retry_backoff=True, max_retries=3)
def record_hit_task(self, uri: str, ip: str, timestamp: str):
    """Report one view of a public endpoint to the stats collector."""
    hit = EndpointHit(app=STATS_APP_NAME, uri=uri, ip=ip, timestamp=datetime.fromisoformat(timestamp))
    with get_stats_client() as stats:
        stats.save_hit(hit)
