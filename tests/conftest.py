"""
Pytest configuration and fixtures for testing.

This file provides reusable test fixtures for:
- Database setup/teardown
- A controllable clock for expiry tests
- A delivery gateway wired to an in-memory Twilio client and a recording email transport
- FastAPI test client with overridden dependencies
"""

import json
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import httpx
import pytest
import requests
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from twilio.base.exceptions import TwilioRestException

from app.core.database import Base, get_db
from app.core.deps import get_delivery_gateway, get_verification_store
from app.core.security import create_access_token
from app.core.verification import PhoneVerificationService
from app.crud.phone_verification import SQLAlchemyVerificationStore
from app.models.user import User
from app.services.email_service import EmailTransport
from app.services.phone_lookup import PhoneLookupClient
from app.services.sms_gateway import EmailToSMSGateway
from main import app


# Use in-memory SQLite for testing (fast, isolated)
SQLALCHEMY_TEST_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

SMS_GATEWAY_DOMAIN = "sms.example.com"


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = None):
        self.now = start or datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class RecordingEmailTransport(EmailTransport):
    """Email transport that records messages instead of sending them."""

    def __init__(self, succeed: bool = True, configured: bool = True):
        self.succeed = succeed
        self.configured = configured
        self.sent = []

    def is_configured(self) -> bool:
        return self.configured

    def send_email(self, to_email, subject, text_body, html_body=None) -> bool:
        self.sent.append({
            "to_email": to_email,
            "subject": subject,
            "text_body": text_body,
            "html_body": html_body,
        })
        return self.succeed


class FakeTwilioClient:
    """
    In-memory stand-in for `twilio.rest.Client` covering Lookup v2 and Messages.

    `line_types` maps a phone number (as sent) to a line type; the special
    values "error" (API error), "unreachable" (network failure) and
    "invalid" (valid=false) exercise the failure paths.
    """

    def __init__(self, line_types: dict = None, default_type: str = "mobile", fail_messages: bool = False):
        self.line_types = line_types if line_types is not None else {}
        self.default_type = default_type
        self.fail_messages = fail_messages
        self.lookups_seen = []
        self.sent = []

        self.lookups = SimpleNamespace(v2=SimpleNamespace(phone_numbers=self._phone_number))
        self.messages = SimpleNamespace(create=self._create_message)

    def _phone_number(self, number):
        return SimpleNamespace(fetch=lambda **params: self._lookup(number, params))

    def _lookup(self, number, params):
        self.lookups_seen.append((number, params))
        line_type = self.line_types.get(number, self.default_type)

        if line_type == "error":
            raise TwilioRestException(404, f"/v2/PhoneNumbers/{number}", msg="Not Found", code=20404)
        if line_type == "unreachable":
            raise requests.ConnectionError("connection refused")
        if line_type == "invalid":
            return SimpleNamespace(
                phone_number=number,
                valid=False,
                validation_errors=["TOO_SHORT"],
                line_type_intelligence=None,
            )

        return SimpleNamespace(
            phone_number=number,
            valid=True,
            validation_errors=[],
            line_type_intelligence={"type": line_type, "error_code": None},
        )

    def _create_message(self, to, from_, body):
        if self.fail_messages:
            raise TwilioRestException(
                400, "/2010-04-01/Accounts/ACtest/Messages.json", msg="Invalid 'To' Phone Number", code=21211
            )
        self.sent.append({"to": to, "from_": from_, "body": body})
        return SimpleNamespace(sid=f"SM{len(self.sent):032d}")


@pytest.fixture
def db_session():
    """
    Create a fresh database for each test.
    """
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def line_types():
    """Per-test overrides of the looked-up line type, keyed by phone number."""
    return {}


@pytest.fixture
def email_transport():
    return RecordingEmailTransport()


@pytest.fixture
def twilio_client(line_types):
    return FakeTwilioClient(line_types)


@pytest.fixture
def lookup_client(twilio_client):
    return PhoneLookupClient("ACtest", "test-token", twilio_client=twilio_client)


@pytest.fixture
def gateway(lookup_client, email_transport):
    return EmailToSMSGateway(lookup_client, email_transport, SMS_GATEWAY_DOMAIN)


@pytest.fixture
def store(db_session, clock):
    return SQLAlchemyVerificationStore(db_session, clock=clock)


@pytest.fixture
def service(store, gateway):
    return PhoneVerificationService(store, gateway)


def _make_user(db_session, email: str) -> User:
    user = User(id=uuid.uuid4(), email=email, first_name="Test", last_name="User")
    db_session.add(user)
    db_session.commit()
    db_session.refresh(user)
    return user


@pytest.fixture
def user(db_session):
    return _make_user(db_session, "member@example.com")


@pytest.fixture
def other_user(db_session):
    return _make_user(db_session, "other@example.com")


def auth_headers_for(user: User) -> dict:
    token = create_access_token(data={"sub": str(user.id)})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def auth_headers(user):
    return auth_headers_for(user)


@pytest.fixture
def client(db_session, gateway, store):
    """
    FastAPI test client with database, gateway and store overridden.
    """
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_delivery_gateway] = lambda: gateway
    app.dependency_overrides[get_verification_store] = lambda: store

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_profile_data():
    """Sample profile payload, as the web client sends it"""
    return {
        "firstName": "Anna",
        "lastName": "Thomas",
        "age": 28,
        "gender": "Female",
        "denomination": "Syro-Malabar Catholic",
        "location": "Toronto, Canada",
        "occupation": "Pharmacist",
        "aboutMe": "Family-oriented, enjoys choir and hiking.",
        "partnerPreferences": "Practicing Christian, 28-34",
        "createdBy": "Parent",
    }


def json_body(request: httpx.Request) -> dict:
    return json.loads(request.content.decode())
