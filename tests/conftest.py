"""
Shared fixtures: an in-memory SQLite engine, an in-memory storage client and
a TestClient wired to both through app.dependency_overrides.
"""
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session as SQLModelSession
from sqlmodel import SQLModel, create_engine

from orbitfund.app import app
from orbitfund.core.dependencies import get_storage_client
from orbitfund.core.models import (
    ATTACHMENT_MODELS,
    AttachmentKindEnum,
    Mission,
    MissionMilestone,
    MissionStatusEnum,
    UserInDB,
)
from orbitfund.core.security import build_claims, create_access_token, get_password_hash
from orbitfund.core.error_types import StorageError
from orbitfund.core.storage import InMemoryStorageClient
from orbitfund.db import create_db_and_tables, get_engine

TEST_PASSWORD = "secret123"
# hashing is slow; one hash serves every seeded user
_TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


@pytest.fixture
def engine():
    """Fresh in-memory database per test. StaticPool keeps every session on one connection."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    create_db_and_tables(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def storage():
    return InMemoryStorageClient()


@pytest.fixture
def client(engine, storage):
    """Test client for making requests"""
    app.dependency_overrides[get_engine] = lambda: engine
    app.dependency_overrides[get_storage_client] = lambda: storage
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def make_user(engine):
    """Creates a user and returns (user, auth headers)."""
    def _make_user(username: str = "pilot", admin: bool = False):
        with SQLModelSession(engine) as session:
            user = UserInDB(
                username=username,
                email=f"{username}@example.com",
                hashed_password=_TEST_PASSWORD_HASH,
                admin_granted_at=datetime.now(timezone.utc) if admin else None,
            )
            session.add(user)
            session.commit()
            session.refresh(user)
            token = create_access_token(build_claims(user))
            session.expunge(user)
        return user, {"Authorization": f"Bearer {token}"}
    return _make_user


@pytest.fixture
def make_mission(engine):
    """Seeds a mission with optional attachments and milestones; returns its id."""
    def _make_mission(
        owner_id: int,
        status: MissionStatusEnum = MissionStatusEnum.PENDING,
        user_approved: bool = True,
        title: str = "Lunar Cubesat",
        launch_date: Optional[datetime] = None,
        end_time: Optional[datetime] = None,
        attachments: Optional[Dict[AttachmentKindEnum, List[str]]] = None,
        milestones: Optional[List[tuple]] = None,
    ) -> int:
        with SQLModelSession(engine) as session:
            mission = Mission(
                user_id=owner_id,
                title=title,
                description="A small satellite to the Moon.",
                status=status,
                user_approved=user_approved,
                launch_date=launch_date or datetime.now(timezone.utc) + timedelta(days=90),
                end_time=end_time,
            )
            session.add(mission)
            session.flush()
            for kind, urls in (attachments or {}).items():
                for url in urls:
                    session.add(ATTACHMENT_MODELS[kind](mission_id=mission.id, url=url))
            for name, target in milestones or []:
                session.add(MissionMilestone(mission_id=mission.id, milestone_name=name, target_amount=target))
            session.commit()
            return mission.id
    return _make_mission


@pytest.fixture
def owner(make_user):
    return make_user("owner")


@pytest.fixture
def other_user(make_user):
    return make_user("intruder")


@pytest.fixture
def admin(make_user):
    return make_user("reviewer", admin=True)


@pytest.fixture
def password():
    return TEST_PASSWORD


@dataclass
class FlakyStorageClient(InMemoryStorageClient):
    """In-memory storage whose uploads start failing after `fail_after` successes."""

    fail_after: int = 0

    def put(self, data, content_type, key_prefix, filename):
        if len(self.objects) >= self.fail_after:
            raise StorageError(f"Upload of '{filename}' failed")
        return super().put(data, content_type, key_prefix, filename)


@pytest.fixture
def flaky_storage(client):
    """Swaps the app's storage client for a FlakyStorageClient."""
    def _flaky_storage(fail_after: int = 0) -> FlakyStorageClient:
        flaky = FlakyStorageClient(fail_after=fail_after)
        app.dependency_overrides[get_storage_client] = lambda: flaky
        return flaky
    return _flaky_storage
