# -*- coding: utf-8 -*-
"""Location: ./tests/conftest.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0
"""

# Standard
from itertools import count
from typing import Callable

# Third-Party
import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

# First-Party
import teamhub.db as db_mod
from teamhub.db import User
from teamhub.services.team_service import TeamService
from teamhub.utils import cluster_lock, redis_client
from teamhub.utils.cluster_lock import ClusterLockProvider, LocalLockStore

_accounts = count(1)


@pytest.fixture
def test_engine():
    """Fresh in-memory SQLite engine with all tables."""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    db_mod.Base.metadata.create_all(bind=engine)
    yield engine
    db_mod.Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def test_session_factory(test_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=test_engine)


@pytest.fixture
def test_db(test_session_factory):
    """Create a fresh database session for a test."""
    db = test_session_factory()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def make_user(test_db: Session) -> Callable[..., User]:
    """Factory persisting users with unique accounts."""

    def _make_user(username: str = "user", user_role: int = 0) -> User:
        user = User(username=username, user_account=f"{username}-{next(_accounts)}", user_role=user_role)
        test_db.add(user)
        test_db.commit()
        return user

    return _make_user


@pytest.fixture
def owner(make_user) -> User:
    return make_user("owner")


@pytest.fixture
def member(make_user) -> User:
    return make_user("member")


@pytest.fixture
def admin(make_user) -> User:
    return make_user("admin", user_role=1)


@pytest.fixture
def lock_provider() -> ClusterLockProvider:
    """Process-local lock provider that polls quickly."""
    return ClusterLockProvider(LocalLockStore(), lease_seconds=5, poll_interval=0.005)


@pytest.fixture
def team_service(test_db, lock_provider) -> TeamService:
    return TeamService(test_db, lock_provider=lock_provider)


@pytest.fixture(autouse=True)
def reset_shared_clients():
    """Drop process-wide Redis client and lock provider between tests."""
    redis_client._reset_client()
    cluster_lock._reset_provider()
    yield
    redis_client._reset_client()
    cluster_lock._reset_provider()
