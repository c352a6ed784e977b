import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from datetime import timedelta
from itertools import count
from unittest.mock import Mock

import fakeredis
import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import Engine, StaticPool, create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.orm.session import Session

from event_explorer.core.clock import utcnow
from event_explorer.database.db import Base, get_db
from event_explorer.main import app
from event_explorer.models.categories import Category
from event_explorer.models.events import Event, EventState, Location
from event_explorer.models.requests import ParticipationRequest, RequestStatus
from event_explorer.models.users import Subscription, User
from event_explorer.schemas.stats import ViewStats

# Use an in-memory SQLite database for testing
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"
engine: Engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="session", autouse=True)
def setup_database():
    """Set up and tear down the database for the test session."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


# Override the database dependency
def override_get_db():
    db: Session = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db


@pytest.fixture
def db_session():
    """A session on the test database; every table is emptied afterwards."""
    db: Session = TestingSessionLocal()
    try:
        yield db
    finally:
        db.rollback()
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
        db.close()


@pytest.fixture
def client():
    with TestClient(app) as test_client:
        yield test_client


class FakeStatsClient:
    """In-memory stand-in for the stats collector client."""

    def __init__(self):
        self.views = {}
        self.hits = []
        self.calls = []
        self.fail = False

    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        pass

    def close(self):
        pass

    def get_hits(self, start, end, uris, unique=False):
        self.calls.append({"start": start, "end": end, "uris": list(uris), "unique": unique})
        if self.fail:
            raise httpx.ConnectError("stats collector is down")
        return [
            ViewStats(app="event-explorer", uri=uri, hits=self.views[uri])
            for uri in uris
            if uri in self.views
        ]

    def save_hit(self, hit):
        self.hits.append(hit)


@pytest.fixture(autouse=True)
def stats_client(monkeypatch: pytest.MonkeyPatch) -> FakeStatsClient:
    fake = FakeStatsClient()
    monkeypatch.setattr("event_explorer.services.events.get_stats_client", lambda: fake)
    monkeypatch.setattr("event_explorer.tasks.get_stats_client", lambda: fake)
    return fake


@pytest.fixture(autouse=True)
def redis_client(monkeypatch: pytest.MonkeyPatch):
    """Replace the real Redis with fakeredis for every test."""
    fake = fakeredis.FakeRedis(decode_responses=True)
    monkeypatch.setattr("event_explorer.services.events.get_redis_client", lambda: fake)
    return fake


@pytest.fixture(autouse=True)
def record_hit(monkeypatch: pytest.MonkeyPatch) -> Mock:
    """Keep public routes from reaching a Celery broker."""
    task = Mock()
    monkeypatch.setattr("event_explorer.routes.public.record_hit_task", task)
    return task


# ---------- Factories ----------
@pytest.fixture
def make_user(db_session: Session):
    numbers = count(1)

    def _make_user(name: str = None) -> User:
        number = next(numbers)
        user = User(name=name or f"user {number}", email=f"user{number}@example.com")
        db_session.add(user)
        db_session.commit()
        return user

    return _make_user


@pytest.fixture
def make_category(db_session: Session):
    numbers = count(1)

    def _make_category(name: str = None) -> Category:
        category = Category(name=name or f"category {next(numbers)}")
        db_session.add(category)
        db_session.commit()
        return category

    return _make_category


@pytest.fixture
def location(db_session: Session) -> Location:
    location = Location(lat=55.75, lon=37.62)
    db_session.add(location)
    db_session.commit()
    return location


@pytest.fixture
def make_event(db_session: Session, make_user, make_category, location: Location):
    def _make_event(
        initiator: User = None,
        category: Category = None,
        state: EventState = EventState.PENDING,
        event_date=None,
        annotation: str = "An annotation that is long enough",
        description: str = "A description that is long enough",
        title: str = "Event",
        paid: bool = False,
        participant_limit: int = 0,
    ) -> Event:
        now = utcnow()
        event = Event(
            annotation=annotation,
            description=description,
            title=title,
            category=category or make_category(),
            location=location,
            initiator=initiator or make_user(),
            created_on=now - timedelta(days=1),
            event_date=event_date or now + timedelta(days=10),
            published_on=now if state is EventState.PUBLISHED else None,
            paid=paid,
            participant_limit=participant_limit,
            state=state,
        )
        db_session.add(event)
        db_session.commit()
        return event

    return _make_event


@pytest.fixture
def make_request(db_session: Session, make_user):
    def _make_request(event: Event, status: RequestStatus = RequestStatus.CONFIRMED) -> ParticipationRequest:
        request = ParticipationRequest(
            event_id=event.id, requester_id=make_user().id, status=status, created=utcnow()
        )
        db_session.add(request)
        db_session.commit()
        return request

    return _make_request


@pytest.fixture
def subscribe(db_session: Session):
    def _subscribe(subscriber: User, user: User) -> Subscription:
        subscription = Subscription(user_id=user.id, subscriber_id=subscriber.id, subscribed_on=utcnow())
        db_session.add(subscription)
        db_session.commit()
        return subscription

    return _subscribe
