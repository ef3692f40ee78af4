import itertools
import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure predictable environment variables for tests before importing the app.
BASE_DIR = Path(__file__).resolve().parents[1]
TEST_DB_PATH = BASE_DIR / "test.db"

if str(BASE_DIR) not in sys.path:
    sys.path.insert(0, str(BASE_DIR))

os.environ.setdefault("DATABASE_URL", f"sqlite:///{TEST_DB_PATH}")
os.environ.setdefault("JWT_SECRET", "test-secret")
os.environ.setdefault("OTP_HASH_PEPPER", "test-pepper")
os.environ.setdefault("ADMIN_API_KEY", "3f" * 32)
os.environ.setdefault("ADMIN_ACCOUNTS", "admin@example.com:s3cret-pass")
os.environ.setdefault("LOG_OTP_FOR_DEV", "false")

import digital_house.main as main  # noqa: E402  (import after env vars are set)
from digital_house.config import settings  # noqa: E402
from digital_house.database import Base, SessionLocal, engine  # noqa: E402
from digital_house.models.user import User, UserStatus  # noqa: E402
from digital_house.services import email_services  # noqa: E402
from digital_house.services.auth_service import create_access_token  # noqa: E402
from digital_house.state import AppLifecycle  # noqa: E402

ADMIN_KEY = settings.ADMIN_API_KEY


@pytest.fixture(autouse=True)
def reset_database():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield


@pytest.fixture(autouse=True)
def outbox(monkeypatch):
    """Capture outgoing mail instead of talking to SMTP."""
    sent = []

    def _otp(to_email, otp, expires_minutes):
        sent.append({"kind": "otp", "to": to_email, "otp": otp, "expires_minutes": expires_minutes})

    def _approval(to_email, full_name=None, remarks=None):
        sent.append({"kind": "approval", "to": to_email, "remarks": remarks})

    def _rejection(to_email, full_name=None, remarks=None):
        sent.append({"kind": "rejection", "to": to_email, "remarks": remarks})

    monkeypatch.setattr(email_services, "send_otp_email", _otp)
    monkeypatch.setattr(email_services, "send_approval_email", _approval)
    monkeypatch.setattr(email_services, "send_rejection_email", _rejection)
    return sent


@pytest.fixture()
def client():
    """TestClient with startup run, so the app is READY."""
    main.app.state.lifecycle = AppLifecycle()
    with TestClient(main.app) as test_client:
        yield test_client


@pytest.fixture()
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture()
def make_user(db):
    counter = itertools.count(1)

    def _make(status=UserStatus.APPROVED, community="Chennai", **fields):
        n = next(counter)
        values = {
            "full_name": f"Member {n}",
            "email": f"member{n}@example.com",
            "mobile": f"98765{n:05d}",
            "location": "Chennai",
            "kulam": "Other",
            "community": community,
            "status": status.value,
        }
        values.update(fields)
        user = User(**values)
        db.add(user)
        db.commit()
        db.refresh(user)
        return user

    return _make


@pytest.fixture()
def auth_headers():
    def _headers(user):
        return {"Authorization": f"Bearer {create_access_token(user.id)}"}

    return _headers


@pytest.fixture()
def admin_headers():
    return {"X-Admin-Key": ADMIN_KEY}
