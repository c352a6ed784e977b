"""
Test database models (Event, Location, ParticipationRequest, Subscription).
"""
import pytest
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from event_explorer.models.events import Event, EventState, Location, event_snapshot
from event_explorer.models.requests import ParticipationRequest, RequestStatus


class TestEventModel:
    """Test the Event model."""

    def test_create_event(self, db_session: Session, make_event):
        """Test creating an event with its defaults."""
        event = make_event(title="Test Event")
        db_session.refresh(event)

        assert event.id is not None
        assert event.title == "Test Event"
        assert event.state is EventState.PENDING
        assert event.participant_limit == 0
        assert event.request_moderation is True
        assert event.published_on is None

    def test_event_loads_related_rows(self, db_session: Session, make_event, make_user, make_category):
        """Test that category, location and initiator are loaded with the event."""
        user = make_user(name="Alice")
        category = make_category(name="Concerts")
        event_id = make_event(initiator=user, category=category).id
        db_session.expunge_all()

        event = db_session.get(Event, event_id)
        db_session.expunge(event)

        assert event.initiator.name == "Alice"
        assert event.category.name == "Concerts"
        assert (event.location.lat, event.location.lon) == (55.75, 37.62)

    def test_state_is_stored_as_string(self, db_session: Session, make_event):
        """Test that the state column round-trips the enum."""
        event = make_event(state=EventState.CANCELED)
        db_session.expire_all()

        assert db_session.get(Event, event.id).state is EventState.CANCELED

    def test_event_snapshot(self, make_event):
        """Test that the snapshot contains every persisted column."""
        event = make_event(title="Snapshot")
        snapshot = event_snapshot(event)

        assert snapshot["id"] == event.id
        assert snapshot["title"] == "Snapshot"
        assert snapshot["state"] is EventState.PENDING
        assert "category_id" in snapshot
        assert "views" not in snapshot
        assert "confirmed_requests" not in snapshot


class TestLocationModel:
    """Test the Location model."""

    def test_coordinates_are_unique(self, db_session: Session, location: Location):
        """Test that the same coordinates cannot be stored twice."""
        db_session.add(Location(lat=location.lat, lon=location.lon))
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()


class TestParticipationRequestModel:
    """Test the ParticipationRequest model."""

    def test_one_request_per_user_and_event(self, db_session: Session, make_event, make_request):
        """Test the unique constraint on (event, requester)."""
        event = make_event()
        request = make_request(event)

        db_session.add(
            ParticipationRequest(
                event_id=event.id,
                requester_id=request.requester_id,
                status=RequestStatus.PENDING,
                created=request.created,
            )
        )
        with pytest.raises(IntegrityError):
            db_session.commit()
        db_session.rollback()

    def test_request_references_event(self, make_event, make_request):
        """Test the relationship from a request to its event."""
        event = make_event()
        request = make_request(event, status=RequestStatus.PENDING)

        assert request.event.id == event.id
        assert request.status is RequestStatus.PENDING
