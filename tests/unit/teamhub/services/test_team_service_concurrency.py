# -*- coding: utf-8 -*-
"""Location: ./tests/unit/teamhub/services/test_team_service_concurrency.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Join serialization through the cluster lock.
"""

# Standard
import asyncio
from concurrent.futures import ThreadPoolExecutor

# Third-Party
import pytest
from sqlalchemy import create_engine, func, select
from sqlalchemy.orm import sessionmaker

# First-Party
from teamhub.config import settings
from teamhub.db import Base, User, UserTeam
from teamhub.schemas import TeamCreate, TeamJoinRequest
from teamhub.services.team_service import TeamParameterError, TeamService


def _membership_count(db, team_id: int) -> int:
    return db.execute(select(func.count(UserTeam.id)).where(UserTeam.team_id == team_id)).scalar_one()


class TestJoinLock:
    @pytest.mark.asyncio
    async def test_join_waits_for_lock_holder(self, team_service, test_db, lock_provider, owner, member):
        team_id = await team_service.create_team(TeamCreate(name="wait", max_members=3), owner)
        holder = lock_provider.get_lock(settings.join_lock_name)
        await holder.acquire()

        task = asyncio.create_task(team_service.join_team(TeamJoinRequest(team_id=team_id), member))
        await asyncio.sleep(0.05)

        assert not task.done()
        assert _membership_count(test_db, team_id) == 1

        await holder.release()
        assert await asyncio.wait_for(task, timeout=2) is True
        assert _membership_count(test_db, team_id) == 2

    @pytest.mark.asyncio
    async def test_interrupted_join_returns_false(self, team_service, test_db, lock_provider, owner, member):
        team_id = await team_service.create_team(TeamCreate(name="stop", max_members=3), owner)
        holder = lock_provider.get_lock(settings.join_lock_name)
        await holder.acquire()

        task = asyncio.create_task(team_service.join_team(TeamJoinRequest(team_id=team_id), member))
        await asyncio.sleep(0.05)

        assert lock_provider.interrupt_waiters() == 1
        assert await asyncio.wait_for(task, timeout=2) is False
        assert _membership_count(test_db, team_id) == 1
        # The interrupted join must not release a lock it never held
        assert await holder.is_held()

        await holder.release()

    @pytest.mark.asyncio
    async def test_rejected_join_releases_lock(self, team_service, lock_provider, owner):
        team_id = await team_service.create_team(TeamCreate(name="dup", max_members=3), owner)

        with pytest.raises(TeamParameterError):
            await team_service.join_team(TeamJoinRequest(team_id=team_id), owner)

        follower = lock_provider.get_lock(settings.join_lock_name)
        await asyncio.wait_for(follower.acquire(), timeout=1)
        await follower.release()


def test_concurrent_joins_never_exceed_capacity(tmp_path, lock_provider):
    engine = create_engine(f"sqlite:///{tmp_path / 'joins.db'}", connect_args={"check_same_thread": False, "timeout": 30})
    Base.metadata.create_all(bind=engine)
    Session = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    with Session() as db:
        users = [User(username=f"u{i}", user_account=f"race-{i}") for i in range(9)]
        db.add_all(users)
        db.commit()
        user_ids = [u.id for u in users]
        team_id = asyncio.run(TeamService(db, lock_provider=lock_provider).create_team(TeamCreate(name="race", max_members=3), users[0]))

    def join(user_id: int) -> str:
        with Session() as db:
            service = TeamService(db, lock_provider=lock_provider)
            try:
                asyncio.run(service.join_team(TeamJoinRequest(team_id=team_id), db.get(User, user_id)))
            except TeamParameterError as e:
                return str(e)
            return "joined"

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(join, user_ids[1:]))

    assert outcomes.count("joined") == 2
    assert outcomes.count("Team is full") == 6
    with Session() as db:
        assert _membership_count(db, team_id) == 3
    engine.dispose()
