"""
Shared fixtures: in-memory SQLite database, dependency overrides, users and tokens.
"""
import hashlib
import hmac
import json
import time

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from app.main import app
from app.core import config
from app.core.security import hash_password, create_access_token
from app.db import session as db_session_module
from app.db.base import Base
from app.db.models.user import User
from app.db.models.subscription import Subscription
from app.db.session import get_db, get_service_db


# Setup in-memory SQLite database for testing
TEST_DATABASE_URL = "sqlite:///:memory:"
test_engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

WEBHOOK_SECRET = "whsec_test_secret"


def override_get_db():
    """Override get_db dependency for testing."""
    db = TestSessionLocal()
    try:
        yield db
    finally:
        db.close()


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_service_db] = override_get_db


@pytest.fixture(scope="function", autouse=True)
def setup_db():
    """Create and drop tables for each test."""
    Base.metadata.create_all(bind=test_engine)
    yield
    Base.metadata.drop_all(bind=test_engine)


@pytest.fixture
def db():
    """Provide a database session for tests."""
    session = TestSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(monkeypatch):
    """Test client; the route guard middleware reads the test database too."""
    monkeypatch.setattr(db_session_module, "SessionLocal", TestSessionLocal)
    return TestClient(app)


def _make_user(db, email="owner@example.com", full_name="Test Owner"):
    user = User(full_name=full_name, email=email, password_hash=hash_password("testpass123"))
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def _subscribe(db, user, plan_id, status="active", stripe_subscription_id=None):
    sub = Subscription(
        user_id=user.id,
        plan_id=plan_id,
        status=status,
        stripe_subscription_id=stripe_subscription_id,
    )
    db.add(sub)
    db.commit()
    db.refresh(sub)
    return sub


def _auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': user.email})}"}


def _sign_payload(payload: str, secret: str = WEBHOOK_SECRET, timestamp: int = None) -> str:
    """Build a Stripe-Signature header for payload."""
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.{payload}".encode("utf-8")
    signature = hmac.new(secret.encode("utf-8"), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def _post_event(client, event: dict, secret: str = WEBHOOK_SECRET):
    payload = json.dumps(event)
    return client.post(
        "/billing/webhook",
        content=payload,
        headers={"Stripe-Signature": _sign_payload(payload, secret), "Content-Type": "application/json"},
    )


@pytest.fixture
def owner(db):
    """Tenant owner with no subscription row."""
    return _make_user(db)


@pytest.fixture
def owner_headers(owner):
    return _auth_headers(owner)


@pytest.fixture
def webhook_secret(monkeypatch):
    monkeypatch.setattr(config, "STRIPE_WEBHOOK_SECRET", WEBHOOK_SECRET)
    return WEBHOOK_SECRET


@pytest.fixture
def make_user(db):
    """Factory: make_user(email) -> User."""
    def factory(email="member@example.com", full_name="Team Member"):
        return _make_user(db, email=email, full_name=full_name)
    return factory


@pytest.fixture
def subscribe(db):
    """Factory: subscribe(user, plan_id, status="active", stripe_subscription_id=None)."""
    def factory(user, plan_id, status="active", stripe_subscription_id=None):
        return _subscribe(db, user, plan_id, status, stripe_subscription_id)
    return factory


@pytest.fixture
def headers_for():
    return _auth_headers


@pytest.fixture
def sign_payload():
    return _sign_payload


@pytest.fixture
def post_event(webhook_secret):
    """Signed POST /billing/webhook with the configured secret."""
    return _post_event
