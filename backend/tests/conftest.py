import os

# The app builds its engine at import time; keep it off any real database.
os.environ["DATABASE_URL"] = "sqlite+pysqlite://"
os.environ["NOTIFY_RESERVATION_EMAILS"] = "false"
os.environ["TIMEZONE"] = "UTC"

import uuid

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from roombook.api.deps import get_db
from roombook.db.base import Base
from roombook.main import app
from roombook.models.reservation import Reservation, ReservationStatus


@pytest.fixture()
def session_factory():
    engine = create_engine(
        "sqlite+pysqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()


@pytest.fixture()
def db_session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture()
def client(session_factory):
    def override_get_db():
        db = session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


def register_user(client, payload):
    response = client.post("/api/auth/register", json=payload)
    assert response.status_code == 201, response.text
    return response.json()


def login_user(client, email, password="password123"):
    response = client.post("/api/auth/login", json={"email": email, "password": password})
    assert response.status_code == 200, response.text
    return response.json()["access_token"]


def auth_headers(token):
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture()
def users(client):
    """Registers one account per role and returns their ids and auth headers."""
    accounts = {}
    for role in ("admin", "coordinator", "professor", "student"):
        email = f"{role}@example.edu"
        user = register_user(
            client,
            {
                "name": f"{role.title()} User",
                "email": email,
                "password": "password123",
                "role": role,
                "department": "Engineering",
            },
        )
        accounts[role] = {"id": user["id"], "headers": auth_headers(login_user(client, email))}
    return accounts


@pytest.fixture()
def room(client, users):
    response = client.post(
        "/api/rooms/",
        json={"name": "Lecture Hall A", "code": "LH-A", "building": "Main", "capacity": 120},
        headers=users["admin"]["headers"],
    )
    assert response.status_code == 201, response.text
    return response.json()


class InMemoryReservationStore:
    """Reservation store backed by a dict, for exercising the engine without a database."""

    def __init__(self):
        self.rows = {}
        self.locked_rooms = []
        self.failing_operations = {}

    def fail(self, operation, after=0):
        # Raise from `operation` once it has succeeded `after` times.
        self.failing_operations[operation] = after

    def _maybe_fail(self, operation):
        remaining = self.failing_operations.get(operation)
        if remaining is None:
            return
        if remaining == 0:
            raise SQLAlchemyError(f"{operation} failed")
        self.failing_operations[operation] = remaining - 1

    def add(self, **fields):
        fields.setdefault("id", str(uuid.uuid4()))
        fields.setdefault("title", "Existing booking")
        fields.setdefault("status", ReservationStatus.confirmed)
        fields.setdefault("equipment_needed", [])
        reservation = Reservation(**fields)
        self.rows[reservation.id] = reservation
        return reservation

    def find_overlapping(self, room_id, start, end, statuses):
        return [
            row
            for row in self.rows.values()
            if row.room_id == room_id
            and row.status in statuses
            and row.start_datetime < end
            and row.end_datetime > start
        ]

    def get_reservation(self, reservation_id):
        return self.rows.get(reservation_id)

    def insert_reservation(self, fields):
        self._maybe_fail("insert_reservation")
        return self.add(**fields)

    def update_reservation(self, reservation_id, fields):
        self._maybe_fail("update_reservation")
        row = self.rows[reservation_id]
        for key, value in fields.items():
            setattr(row, key, value)

    def update_reservations_by_group(self, group_id, fields, statuses):
        self._maybe_fail("update_reservations_by_group")
        matched = [
            row
            for row in self.rows.values()
            if row.recurring_template_id == group_id and row.status in statuses
        ]
        for row in matched:
            for key, value in fields.items():
                setattr(row, key, value)
        return len(matched)

    def lock_room(self, room_id):
        self.locked_rooms.append(room_id)


class RecordingNotifier:
    def __init__(self, error=None):
        self.events = []
        self.error = error

    def notify_reservation_event(self, reservation_id, event_type):
        self.events.append((reservation_id, event_type))
        if self.error is not None:
            raise self.error


@pytest.fixture()
def memory_store():
    return InMemoryReservationStore()


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def failing_notifier():
    return RecordingNotifier(error=RuntimeError("smtp down"))
