"""Pytest fixtures: SQLite database and in-memory collaborators for fast, isolated tests."""
import os
import uuid
from datetime import timedelta

os.environ["DATABASE_URL"] = "sqlite:///./test.db"
os.environ["MEDIA_ROOT"] = "./test-media"

import pytest
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from fastapi.testclient import TestClient

from clubhub.clients.blob_store import get_blob_store
from clubhub.clients.payment_gateway import GatewayOrder, RazorpayGateway, get_payment_gateway
from clubhub.database import Base, get_db
from clubhub.errors import UpstreamError
from clubhub.main import app
from clubhub.models.user import UserRole
from clubhub.schemas.user import UserOut
from clubhub.services import user_service
from clubhub.services.clock import campus_today

# Import all models so they register with Base.metadata
from clubhub.models.user import User                                  # noqa: F401
from clubhub.models.club import Club, ClubMember, MembershipRequest   # noqa: F401
from clubhub.models.event import Event                                # noqa: F401
from clubhub.models.registration import Registration                  # noqa: F401
from clubhub.models.attendance import EventAttendance                 # noqa: F401
from clubhub.models.payment import Payment                            # noqa: F401

SQLITE_URL = "sqlite:///./test.db"
TEST_KEY_ID = "rzp_test_key"
TEST_KEY_SECRET = "rzp_test_secret"


class InMemoryBlobStore:
    """Blob store double; set ``fail`` to simulate an upload outage."""

    def __init__(self):
        self.objects: dict[str, tuple[bytes, str]] = {}
        self.deleted: list[str] = []
        self.fail = False

    def put(self, data: bytes, content_type: str, prefix: str = "uploads") -> str:
        if self.fail:
            raise UpstreamError("File upload failed")
        url = f"memory://{prefix}/{uuid.uuid4().hex}"
        self.objects[url] = (data, content_type)
        return url

    def delete(self, url: str) -> None:
        self.deleted.append(url)
        self.objects.pop(url, None)


class FakeGateway(RazorpayGateway):
    """Razorpay double: real signature check, canned order creation."""

    def __init__(self):
        super().__init__(TEST_KEY_ID, TEST_KEY_SECRET, "https://gateway.invalid/v1", timeout=1.0)
        self.orders: list[GatewayOrder] = []
        self.fail = False

    def create_order(self, amount: int, currency: str, receipt: str) -> GatewayOrder:
        if self.fail:
            raise UpstreamError("Payment gateway unavailable")
        order = GatewayOrder(
            order_id=f"order_{uuid.uuid4().hex[:14]}",
            amount=amount,
            currency=currency,
            receipt=receipt,
        )
        self.orders.append(order)
        return order


@pytest.fixture(scope="function")
def db_engine():
    """Create a fresh SQLite engine for each test."""
    engine = create_engine(SQLITE_URL, connect_args={"check_same_thread": False})

    # Enable WAL mode for better concurrency
    @event.listens_for(engine, "connect")
    def _set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA journal_mode=WAL")
        cursor.close()

    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db(db_engine):
    """Yield a database session bound to the test engine."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = TestingSession()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def blob_store():
    return InMemoryBlobStore()


@pytest.fixture(scope="function")
def gateway():
    return FakeGateway()


@pytest.fixture(scope="function")
def client(db_engine, blob_store, gateway):
    """FastAPI TestClient with the database and collaborators overridden."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)

    def _override_get_db():
        session = TestingSession()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_blob_store] = lambda: blob_store
    app.dependency_overrides[get_payment_gateway] = lambda: gateway
    with TestClient(app) as c:
        c.session_factory = TestingSession
        yield c
    app.dependency_overrides.clear()


# ---------------------------------------------------------------------------
# Helpers: build users, clubs and events through the API
# ---------------------------------------------------------------------------
def auth(user: dict) -> dict:
    """Identity header for ``user``."""
    return {"X-User-Id": user["user_id"]}


def create_test_user(client: TestClient, name: str = "Test Student", role: str = "student") -> dict:
    """Helper: POST /api/users and return response JSON."""
    suffix = uuid.uuid4().hex[:8]
    payload = {"name": name, "email": f"{suffix}@campus.test", "role": role}
    if role == "student":
        payload["roll_number"] = f"RN{suffix}"
    resp = client.post("/api/users/", json=payload)
    assert resp.status_code == 201, resp.text
    return resp.json()


def create_test_admin(client: TestClient, name: str = "Admin") -> dict:
    """Helper: admins cannot sign up through the API, so seed one straight into the test database."""
    session = client.session_factory()
    try:
        user = user_service.create_user(session, name=name, email=f"{uuid.uuid4().hex[:8]}@campus.test", role=UserRole.admin)
        return UserOut.model_validate(user).model_dump(mode="json")
    finally:
        session.close()


def create_test_club(client: TestClient, admin: dict, name: str = "Robotics Club") -> dict:
    """Helper: POST /api/clubs as ``admin`` and return response JSON."""
    resp = client.post("/api/clubs/", json={"name": name, "description": f"{name} description"}, headers=auth(admin))
    assert resp.status_code == 201, resp.text
    return resp.json()


def make_leader(client: TestClient, admin: dict, club: dict, name: str = "Club Leader") -> dict:
    """Helper: create a student and promote them to leader of ``club``."""
    user = create_test_user(client, name=name)
    resp = client.post(f"/api/clubs/{club['club_id']}/leader", json={"user_id": user["user_id"]}, headers=auth(admin))
    assert resp.status_code == 200, resp.text
    user["role"] = "leader"
    return user


def join_club(client: TestClient, student: dict, club: dict, leader: dict) -> None:
    """Helper: student requests to join, leader approves."""
    resp = client.post(f"/api/clubs/{club['club_id']}/join", json={"reason": "I like robots a lot"}, headers=auth(student))
    assert resp.status_code == 201, resp.text
    resp = client.post(
        f"/api/clubs/requests/{resp.json()['request_id']}/review",
        json={"action": "approve"},
        headers=auth(leader),
    )
    assert resp.status_code == 200, resp.text


def create_test_event(client: TestClient, leader: dict, days_ahead: int = 7, files=None, **overrides):
    """Helper: POST /api/events as a multipart/urlencoded form; returns the response."""
    form = {
        "title": "Intro to Soldering",
        "description": "Hands-on workshop",
        "date": (campus_today() + timedelta(days=days_ahead)).isoformat(),
        "time": "10:00 - 12:00",
        "venue": "Lab 3",
        "visibility": "open-to-all",
        "is_paid": "false",
        "price": "0",
    }
    form.update({key: str(value) for key, value in overrides.items()})
    return client.post("/api/events/", data=form, files=files, headers=auth(leader))


def approve_event(client: TestClient, admin: dict, event_id: str) -> dict:
    resp = client.post(f"/api/events/{event_id}/review", json={"decision": "approved"}, headers=auth(admin))
    assert resp.status_code == 200, resp.text
    return resp.json()


def setup_campus(client: TestClient) -> dict:
    """Admin, one club with a leader, and one student who is not a member."""
    admin = create_test_admin(client)
    club = create_test_club(client, admin)
    leader = make_leader(client, admin, club)
    student = create_test_user(client, name="Student S")
    return {"admin": admin, "club": club, "leader": leader, "student": student}


def approved_event(client: TestClient, campus: dict, **overrides) -> dict:
    """Helper: create an event in the campus club and approve it."""
    resp = create_test_event(client, campus["leader"], **overrides)
    assert resp.status_code == 201, resp.text
    return approve_event(client, campus["admin"], resp.json()["event_id"])
