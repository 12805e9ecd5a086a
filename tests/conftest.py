"""Pytest configuration and fixtures"""

import os

# Required settings must exist before authgate.config is imported
os.environ.setdefault("JWT_SECRET_KEY", "test-jwt-secret-key-with-enough-length")
os.environ.setdefault("GRAPHQL_URL", "http://graphql.test/v1/graphql")
os.environ.setdefault("GRAPHQL_ADMIN_SECRET", "test-admin-secret")
os.environ.setdefault("ENCRYPTION_KEY", "test-encryption-key")
os.environ.setdefault("APP_ENV", "test")

import pytest
import structlog
from fastapi.testclient import TestClient

# Disable rate limiting BEFORE the app starts (lifespan calls init_redis)
from authgate.middleware import rate_limiting
rate_limiting.init_redis = lambda: None
rate_limiting.redis_client = None

from authgate import main
from authgate.database.store import get_store
from authgate.services.notification_service import get_notification_service
from authgate.services.oauth import MockOAuthProvider
from mocks.account_store import InMemoryAccountStore
from mocks.email_service import CapturingNotificationService

# Keep the test logging setup instead of the one applied at startup
main.configure_logging = lambda: None
app = main.app


@pytest.fixture(autouse=True)
def configure_structlog():
    """Configure structlog for testing."""
    structlog.configure(
        processors=[
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.dev.ConsoleRenderer(),
        ],
        context_class=dict,
        cache_logger_on_first_use=False,
    )


@pytest.fixture
def store():
    return InMemoryAccountStore()


@pytest.fixture
def notifications():
    return CapturingNotificationService()


@pytest.fixture
def client(store, notifications):
    """Test client with the GraphQL store and email transport replaced"""
    app.dependency_overrides[get_store] = lambda: store
    app.dependency_overrides[get_notification_service] = lambda: notifications
    MockOAuthProvider.clear_mock_data()
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auto_activate(monkeypatch):
    """Register accounts as active, without a verification email"""
    from authgate.config import settings
    monkeypatch.setattr(settings, "AUTO_ACTIVATE_NEW_USERS", True)


@pytest.fixture
def registered_user(client, auto_activate):
    """Register an active user and return the session payload"""
    response = client.post(
        "/register",
        json={"email": "user@example.com", "password": "correct-horse-battery"},
    )
    assert response.status_code == 200, response.json()
    return response.json()


@pytest.fixture
def auth_headers(registered_user):
    return {"Authorization": f"Bearer {registered_user['jwt_token']}"}


@pytest.fixture
def create_account(store):
    """Insert an account straight into the in-memory store"""
    from authgate.security.password import hash_password

    async def _create(email="user@example.com", password=None, active=True, locale="en"):
        return await store.insert_account(
            email=email,
            password_hash=hash_password(password) if password else None,
            ticket=None,
            ticket_expires_at=None,
            active=active,
            default_role="user",
            roles=["user", "me"],
            locale=locale,
            display_name=email,
            avatar_url=None,
        )

    return _create
