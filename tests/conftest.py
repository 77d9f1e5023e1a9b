from datetime import date, datetime, time
from decimal import Decimal
from pathlib import Path

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

import frontdesk.models  # noqa: F401
from frontdesk.config import settings
from frontdesk.database import Base, get_db
from frontdesk.main import app
from frontdesk.models import Booking, Room, User
from frontdesk.routers.webhook import get_session_factory
from frontdesk.schemas.outbound import InteractiveMessage, MediaMessage, TextMessage
from frontdesk.schemas.webhook import InboundEvent
from frontdesk.services.id_verification_service import IdVerificationError, VerificationResult, get_id_verifier
from frontdesk.services.kv_store import InMemoryKeyValueStore, get_kv_store
from frontdesk.services.whatsapp_service import WhatsAppService, get_whatsapp_service

NOW = datetime(2024, 1, 8, 9, 0)


class FakeGateway(WhatsAppService):
    """Records outbound messages instead of calling the Cloud API."""

    def __init__(self):
        super().__init__(access_token="test-token", api_url="http://whatsapp.test/messages", graph_url="http://whatsapp.test")
        self.sent = []
        self.downloaded = []

    def send(self, to, message):
        self.sent.append((to, message))
        return {"ok": True, "result": {}}

    def download_media(self, media_id, dest_dir):
        dest = Path(dest_dir)
        dest.mkdir(parents=True, exist_ok=True)
        path = dest / f"{media_id}.jpg"
        path.write_bytes(b"fake-image-bytes")
        self.downloaded.append(path)
        return path

    def messages_to(self, phone):
        return [message for to, message in self.sent if to == phone]

    def texts_to(self, phone):
        return [message.body for message in self.messages_to(phone) if isinstance(message, TextMessage)]

    def last_to(self, phone):
        return self.messages_to(phone)[-1]


class FakeVerifier:
    """ID verification double: returns a fixed result or always fails."""

    def __init__(self, result=None, error=None):
        self.result = result
        self.error = error
        self.calls = []

    def verify(self, image_path, id_type, booking_id):
        self.calls.append({"path": image_path, "existed": Path(image_path).exists(), "id_type": id_type})
        if self.error:
            raise self.error
        return self.result


@pytest.fixture
def engine():
    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def gateway():
    return FakeGateway()


@pytest.fixture
def kv_store():
    return InMemoryKeyValueStore()


@pytest.fixture
def failing_verifier():
    return FakeVerifier(error=IdVerificationError("Could not extract required information from ID"))


@pytest.fixture
def passing_verifier():
    return FakeVerifier(
        result=VerificationResult(name="Jane Doe", id_number="A1234567", dob="01/02/1990", ocr_text="Jane Doe\nA1234567")
    )


@pytest.fixture(autouse=True)
def test_settings(monkeypatch, tmp_path):
    monkeypatch.setattr(settings, "admin_phone", "+1999")
    monkeypatch.setattr(settings, "hotel_name", "Test Hotel")
    monkeypatch.setattr(settings, "web_app_url", "http://hotel.test")
    monkeypatch.setattr(settings, "media_temp_dir", str(tmp_path / "media"))
    monkeypatch.setattr(settings, "media_read_backoff_seconds", 0.0)
    monkeypatch.setattr(settings, "hotel_welcome_image_url", "http://hotel.test/welcome.jpg")
    monkeypatch.setattr(settings, "whatsapp_access_token", None)
    return settings


@pytest.fixture
def client(session_factory, gateway, kv_store, failing_verifier):
    def _get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_whatsapp_service] = lambda: gateway
    app.dependency_overrides[get_kv_store] = lambda: kv_store
    app.dependency_overrides[get_id_verifier] = lambda: failing_verifier
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def clock():
    return lambda: NOW


@pytest.fixture
def deluxe_room(db):
    room = Room(type="Deluxe", price=Decimal("100.00"), availability=2, description="King bed, city view")
    db.add(room)
    db.commit()
    return room


@pytest.fixture
def make_booking(db, deluxe_room):
    def _make(phone="+1555", name="Jane Doe", state="confirmed", paid_status="unpaid", **fields):
        user = db.query(User).filter(User.phone == phone).first()
        if not user:
            user = User(phone=phone, name=name)
            db.add(user)
            db.flush()
        values = {
            "room_type": "Deluxe",
            "check_in_date": date(2024, 1, 10),
            "check_in_time": time(14, 0),
            "check_out_date": date(2024, 1, 12),
            "check_out_time": time(11, 0),
            "guest_count": 2,
            "total_price": Decimal("200.00"),
        }
        values.update(fields)
        booking = Booking(user_id=user.id, state=state, state_version=0, paid_status=paid_status, **values)
        db.add(booking)
        db.commit()
        return booking

    return _make


def text_event(body, sender="+1555", message_id="wamid.text"):
    return InboundEvent(kind="text", sender=sender, message_id=message_id, body=body)


def selection_event(selection_id, sender="+1555", message_id="wamid.sel"):
    return InboundEvent(kind="selection", sender=sender, message_id=message_id, selection_id=selection_id)


def image_event(media_id="media-1", sender="+1555", message_id="wamid.img"):
    return InboundEvent(kind="image", sender=sender, message_id=message_id, media_id=media_id)


def option_ids(message):
    assert isinstance(message, InteractiveMessage)
    return message.option_ids


def is_media(message):
    return isinstance(message, MediaMessage)
