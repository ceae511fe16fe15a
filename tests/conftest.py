"""Shared fixtures for the notification service tests."""

from __future__ import annotations

import os
import sys
import tempfile
from pathlib import Path

import pytest

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

_TEST_DB_DIR = Path(tempfile.mkdtemp(prefix="notifications-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_TEST_DB_DIR / 'test.db'}"
os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ["APP_TIMEZONE"] = "Asia/Phnom_Penh"
os.environ["SCHEDULER_ENABLED"] = "false"
os.environ["SMS_ENABLED"] = "false"
os.environ.pop("SENDGRID_API_KEY", None)
os.environ.pop("SENDGRID_SENDER", None)

from app.domain.entities import (  # noqa: E402
    ChannelKind,
    DeliveryOutcome,
    Notification,
    Role,
    User,
)
from app.infrastructure import database  # noqa: E402
from app.infrastructure.channels import NotificationChannel  # noqa: E402
from app.infrastructure.repositories import RoleRepository, UserRepository  # noqa: E402


@pytest.fixture
def anyio_backend() -> str:
    return "asyncio"


@pytest.fixture(autouse=True)
def clean_database():
    """Give every test an empty schema."""

    from app.infrastructure import models  # noqa: F401

    database.Base.metadata.drop_all(bind=database.engine)
    database.Base.metadata.create_all(bind=database.engine)
    yield
    database.engine.dispose()


@pytest.fixture
def session_factory():
    return database.SessionLocal


@pytest.fixture
def session(session_factory):
    db = session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_user(session):
    """Create users (and their role on first use) in the test database."""

    def factory(
        name: str = "Teacher",
        *,
        email: str | None = "teacher@example.com",
        phone_number: str | None = None,
        role_alias: str = "teacher",
        is_active: bool = True,
        deleted: bool = False,
    ) -> User:
        roles = RoleRepository(session)
        role = roles.get_by_alias(role_alias) or roles.create(
            Role(id=0, name=role_alias.capitalize(), alias=role_alias)
        )
        return UserRepository(session).create(
            User(
                id=None,
                role=role,
                name=name,
                email=email,
                phone_number=phone_number,
                is_active=is_active,
                deleted=deleted,
            )
        )

    return factory


class RecordingChannel(NotificationChannel):
    """Channel double that remembers every delivery and can be told to fail."""

    def __init__(self, kind: ChannelKind, *, error: Exception | None = None) -> None:
        super().__init__(timeout_seconds=1)
        self.kind = kind
        self.error = error
        self.deliveries: list[tuple[User, Notification]] = []

    async def deliver(self, user: User, notification: Notification) -> DeliveryOutcome:
        self.deliveries.append((user, notification))
        if self.error is not None:
            raise self.error
        return DeliveryOutcome.success(self.kind)


class RecordingEvents:
    """Stand-in for the realtime publisher used by inbox operations."""

    def __init__(self) -> None:
        self.events: list[tuple[int, str, object]] = []

    def dispatch(self, user_id: int, *, event_type: str, payload) -> None:
        self.events.append((user_id, event_type, payload))


@pytest.fixture
def recording_events() -> RecordingEvents:
    return RecordingEvents()
