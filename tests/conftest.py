import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from flarecare.core.config import ReminderSettings, get_settings
from flarecare.db.base import Base
from flarecare.db.session import get_session_factory
from flarecare.main import create_app
from flarecare.reminders import dispatcher, engine as reminder_engine
from tests.helpers import NOW, FakeWebPush


@pytest.fixture
def settings():
    return ReminderSettings(
        _env_file=None,
        CRON_SECRET="cron-secret",
        STORE_URL="sqlite://",
        STORE_SERVICE_KEY="service-key",
        VAPID_PRIVATE_KEY="vapid-private",
        VAPID_PUBLIC_KEY="vapid-public",
        AUTH_JWT_SECRET="jwt-secret",
        TIMEZONE="UTC",
        REMINDER_WINDOW_MINUTES=15,
    )


@pytest.fixture
def db_engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return sessionmaker(bind=db_engine, autocommit=False, autoflush=False, expire_on_commit=False)


@pytest.fixture
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture
def fake_push(monkeypatch):
    fake = FakeWebPush()
    monkeypatch.setattr(dispatcher, "webpush", fake)
    return fake


@pytest.fixture
def frozen_now(monkeypatch):
    monkeypatch.setattr(reminder_engine, "utc_now", lambda: NOW)
    return NOW


@pytest.fixture
def app(settings, session_factory):
    app = create_app()
    app.dependency_overrides[get_settings] = lambda: settings
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    return app


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def cron_headers():
    return {"Authorization": "Bearer cron-secret"}
