import logging
from typing import Dict, Iterable

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from event_explorer.core.errors import DependencyFailureError
from event_explorer.models.requests import ParticipationRequest, RequestStatus

logger = logging.getLogger(__name__)


class ParticipationCounter:
    """Confirmed participation request counts, one grouped query per batch."""

    def __init__(self, db: Session):
        self.db = db

    def count_confirmed(self, event_ids: Iterable[int]) -> Dict[int, int]:
        ids = set(event_ids)
        if not ids:
            return {}
        stmt = (
            select(ParticipationRequest.event_id, func.count(ParticipationRequest.id))
            .where(
                ParticipationRequest.event_id.in_(ids),
                ParticipationRequest.status == RequestStatus.CONFIRMED,
            )
            .group_by(ParticipationRequest.event_id)
        )
        try:
            rows = self.db.execute(stmt).all()
        except SQLAlchemyError as e:
            logger.error("Confirmed request lookup failed for %d events: %s", len(ids), e)
            raise DependencyFailureError("Could not load confirmed request counts") from e
        return {event_id: int(count) for event_id, count in rows}
