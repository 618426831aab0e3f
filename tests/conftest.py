"""
Pytest configuration and shared fixtures
"""
import os

# The app's own engine must never touch a real database file during tests
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("EMAIL_ENABLED", "false")

import pytest
from datetime import date
from decimal import Decimal
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from core.notification import INotificationChannel, NotificationChannelRegistry
from core.storage import IDocumentStore, DocumentStoreError
from hotelos.config import settings
from hotelos.database import Base, get_db
from hotelos.models import ontology  # noqa: F401
from hotelos.models.ontology import (
    Employee, EmployeeRole, Room, RoomType, RoomStatus, Guest, Booking, BookingStatus
)
from hotelos.security.auth import get_password_hash, create_access_token
from hotelos.services.delivery_service import InvoiceDeliveryService
from hotelos.main import app


@pytest.fixture(autouse=True)
def isolated_settings(tmp_path, monkeypatch):
    """Invoice documents go to a per-test directory; no delivery back-off"""
    monkeypatch.setattr(settings, "INVOICE_STORAGE_DIR", str(tmp_path / "invoices"))
    monkeypatch.setattr(settings, "INVOICE_PUBLIC_BASE_URL", "http://testserver/static/invoices")
    monkeypatch.setattr(settings, "DELIVERY_RETRY_DELAY_SECONDS", 0.0)
    yield


@pytest.fixture(scope="function")
def db_engine():
    """In-memory database"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def db_session(db_engine):
    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=db_engine)
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture(scope="function")
def client(db_session):
    """Test client bound to the test session"""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


class MemoryDocumentStore(IDocumentStore):
    """Document store double; fails the first fail_times writes"""

    def __init__(self, fail_times=0):
        self.objects = {}
        self.fail_times = fail_times
        self.calls = 0

    def put(self, name, content, content_type, overwrite=False):
        self.calls += 1
        if self.calls <= self.fail_times:
            raise DocumentStoreError("storage unavailable")
        if name in self.objects and not overwrite:
            raise DocumentStoreError(f"{name} exists")
        self.objects[name] = content
        return self.url_for(name)

    def exists(self, name):
        return name in self.objects

    def url_for(self, name):
        return f"memory://invoices/{name}"


class OutboxChannel(INotificationChannel):
    """Email channel double that records messages"""

    def __init__(self, accept=True):
        self.accept = accept
        self.sent = []

    def send(self, recipient, subject, content, extra=None):
        self.sent.append({"recipient": recipient, "subject": subject, "content": content, "extra": extra})
        return self.accept

    def get_channel_type(self):
        return "email"


@pytest.fixture
def document_store():
    return MemoryDocumentStore()


@pytest.fixture
def outbox():
    return OutboxChannel()


@pytest.fixture
def channels(outbox):
    registry = NotificationChannelRegistry()
    registry.register(outbox)
    return registry


@pytest.fixture
def delivery(db_session, document_store, channels, published):
    return InvoiceDeliveryService(
        db_session,
        document_store=document_store,
        channels=channels,
        max_attempts=3,
        retry_delay=0,
        event_publisher=published,
    )


@pytest.fixture
def published():
    """Event publisher that records instead of broadcasting"""
    class Recorder(list):
        def __call__(self, event):
            self.append(event)

        def types(self):
            return [getattr(e.event_type, "value", e.event_type) for e in self]

    return Recorder()


# ============== Auth fixtures ==============

def _employee(db, username, role, is_active=True):
    employee = Employee(
        username=username,
        password_hash=get_password_hash("secret123"),
        full_name=username.title(),
        role=role,
        is_active=is_active
    )
    db.add(employee)
    db.commit()
    db.refresh(employee)
    return employee


@pytest.fixture
def manager(db_session):
    return _employee(db_session, "manager", EmployeeRole.MANAGER)


@pytest.fixture
def receptionist(db_session):
    return _employee(db_session, "front1", EmployeeRole.RECEPTIONIST)


@pytest.fixture
def operator(receptionist):
    """The employee performing service-level operations"""
    return receptionist


@pytest.fixture
def manager_auth_headers(manager):
    return {"Authorization": f"Bearer {create_access_token(manager.id, manager.role)}"}


@pytest.fixture
def auth_headers(receptionist):
    return {"Authorization": f"Bearer {create_access_token(receptionist.id, receptionist.role)}"}


# ============== Entity fixtures ==============

@pytest.fixture
def make_room(db_session):
    counter = iter(range(101, 1000))

    def _make(room_number=None, rate="100.00", room_type=RoomType.STANDARD,
              status=RoomStatus.AVAILABLE):
        room = Room(
            room_number=room_number or str(next(counter)),
            room_type=room_type,
            floor=1,
            rate_per_night=Decimal(rate),
            status=status,
        )
        db_session.add(room)
        db_session.commit()
        db_session.refresh(room)
        return room
    return _make


@pytest.fixture
def make_guest(db_session):
    def _make(full_name="Asha Rao", email="asha@example.com", **kwargs):
        guest = Guest(full_name=full_name, email=email, **kwargs)
        db_session.add(guest)
        db_session.commit()
        db_session.refresh(guest)
        return guest
    return _make


@pytest.fixture
def make_booking(db_session):
    """Insert a booking row directly, bypassing the lifecycle checks"""
    def _make(guest, room, check_in=date(2024, 6, 8), check_out=date(2024, 6, 10),
              status=BookingStatus.CONFIRMED, total=None):
        nights = (check_out - check_in).days
        booking = Booking(
            guest_id=guest.id,
            room_id=room.id,
            check_in=check_in,
            check_out=check_out,
            status=status,
            total_amount=Decimal(total) if total is not None else Decimal(room.rate_per_night) * nights,
        )
        db_session.add(booking)
        if status == BookingStatus.CHECKED_IN:
            room.status = RoomStatus.OCCUPIED
        db_session.commit()
        db_session.refresh(booking)
        return booking
    return _make


@pytest.fixture
def sample_room(make_room):
    return make_room("101", rate="100.00")


@pytest.fixture
def sample_guest(make_guest):
    return make_guest()
