"""
Pytest configuration and shared fixtures.

Every test gets its own SQLite file under tmp_path; the app's get_db,
get_settings and clock dependencies are overridden per test.
"""
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

import models  # noqa: F401  registers tables on Base
from config import Settings, get_settings
from database import Base, get_db, make_engine
from deps import get_now

LICENSE_SECRET = "test-license-secret"
STORE_SECRET = "test-store-secret"
STRIPE_SECRET = "whsec_test"

# Wednesday
FIXED_NOW = datetime(2026, 10, 21, 10, 30, tzinfo=timezone.utc)


@pytest.fixture
def engine(tmp_path):
    eng = make_engine(f"sqlite:///{tmp_path / 'fence-test.db'}")
    Base.metadata.create_all(bind=eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def settings():
    return Settings(
        _env_file=None,
        license_secret_key=LICENSE_SECRET,
        license_webhook_secret=STORE_SECRET,
        stripe_webhook_secret=STRIPE_SECRET,
        trial_timezone="UTC",
    )


@pytest.fixture
def client(session_factory, settings):
    from main import app

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_now] = lambda: FIXED_NOW
    yield TestClient(app)
    app.dependency_overrides.clear()
