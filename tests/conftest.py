"""
Global test configuration and fixtures for SessionVault

This module provides shared test fixtures and configuration that can be used
across all test modules. It includes database setup, a controllable clock,
a call-recording session store and client fixtures.
"""

import base64
import logging
from collections import Counter
from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from sessionvault.core.config import SessionConfiguration, Settings
from sessionvault.core.utils.encryption import (
    CryptographyConfiguration,
    FernetEncryptionProvider,
    Sha256HmacProvider,
)
from sessionvault.db.session import create_session_engine
from sessionvault.main import create_app
from sessionvault.sessions.manager import DocumentSessions
from sessionvault.sessions.memory_store import InMemorySessionStore


# ============================================================================
# Test Doubles
# ============================================================================

class FakeClock:
    """Frozen UTC clock that only moves when told to"""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now += timedelta(**kwargs)
        return self.now


class RecordingSessionStore(InMemorySessionStore):
    """In-memory store that counts calls per operation"""

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.calls = Counter()

    def create(self, session_id):
        self.calls["create"] += 1
        return super().create(session_id)

    def retrieve(self, session_id):
        self.calls["retrieve"] += 1
        return super().retrieve(session_id)

    def touch_last_accessed(self, session_id):
        self.calls["touch_last_accessed"] += 1
        return super().touch_last_accessed(session_id)

    def update(self, session_id, data):
        self.calls["update"] += 1
        return super().update(session_id, data)

    def delete_expired(self, cutoff):
        self.calls["delete_expired"] += 1
        return super().delete_expired(cutoff)

    def ensure_schema(self):
        self.calls["ensure_schema"] += 1
        return super().ensure_schema()


# ============================================================================
# Clock and Cryptography Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def fake_clock():
    """Clock frozen at a fixed UTC instant"""
    return FakeClock(datetime(2024, 1, 15, 12, 0, tzinfo=timezone.utc))


def _fixed_cryptography(seed: bytes) -> CryptographyConfiguration:
    encryption_key = base64.urlsafe_b64encode(seed.ljust(32, b"0")[:32])
    return CryptographyConfiguration(
        encryption_provider=FernetEncryptionProvider(encryption_key),
        hmac_provider=Sha256HmacProvider(seed.ljust(32, b"1")[:32]),
    )


@pytest.fixture(scope="function")
def cryptography_configuration():
    """Deterministic cookie keys (no key derivation, fast)"""
    return _fixed_cryptography(b"sessionvault-test-keys")


@pytest.fixture(scope="function")
def other_cryptography_configuration():
    """A second, unrelated set of cookie keys"""
    return _fixed_cryptography(b"some-other-application")


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def sqlite_engine():
    """In-memory SQLite engine shared across threads (StaticPool)"""
    engine = create_session_engine("sqlite://")
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def session_configuration(sqlite_engine, cryptography_configuration):
    """Session configuration over the in-memory SQLite engine"""
    return SessionConfiguration(
        connection=sqlite_engine,
        cryptography_configuration=cryptography_configuration,
    )


# ============================================================================
# Session Manager Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def make_sessions(sqlite_engine, cryptography_configuration, fake_clock):
    """
    Factory building a DocumentSessions over a recording in-memory store.

    Keyword arguments are passed through to SessionConfiguration.
    """
    def _make(**options):
        configuration = SessionConfiguration(
            connection=sqlite_engine,
            cryptography_configuration=cryptography_configuration,
            **options,
        )
        store = RecordingSessionStore(
            clock=fake_clock, use_rolling_sessions=configuration.use_rolling_sessions
        )
        return DocumentSessions(configuration, store=store, clock=fake_clock)

    return _make


@pytest.fixture(scope="function")
def sessions(make_sessions):
    """Session manager with default configuration"""
    return make_sessions()


# ============================================================================
# Application Client Fixtures
# ============================================================================

@pytest.fixture(scope="function")
def test_settings():
    """Settings isolated from the environment and any .env file"""
    return Settings(
        _env_file=None,
        DATABASE_URL="sqlite://",
        SECRET_KEY="test-secret-key-for-testing-only-0123456789",
        DEV_MODE=False,
        LOG_JSON=False,
    )


@pytest.fixture(scope="function")
def app(test_settings, sqlite_engine, cryptography_configuration):
    """Application wired to the in-memory SQLite engine"""
    # create_app reconfigures the root logger; restore it afterwards
    root_logger = logging.getLogger()
    original_handlers = root_logger.handlers[:]
    original_level = root_logger.level

    yield create_app(
        settings=test_settings,
        engine=sqlite_engine,
        cryptography_configuration=cryptography_configuration,
    )

    root_logger.handlers[:] = original_handlers
    root_logger.setLevel(original_level)


@pytest.fixture(scope="function")
def client(app):
    """Create FastAPI test client"""
    with TestClient(app) as test_client:
        yield test_client


# ============================================================================
# Test Markers and Configuration
# ============================================================================

def pytest_configure(config):
    """Configure pytest with custom markers and settings"""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "security: mark test as security-related"
    )


def pytest_collection_modifyitems(config, items):
    """Modify test collection to add markers based on file location"""
    for item in items:
        path = str(item.fspath)
        if "security" in path:
            item.add_marker(pytest.mark.security)
        if "integration" in path:
            item.add_marker(pytest.mark.integration)
