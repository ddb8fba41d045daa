# -*- coding: utf-8 -*-
"""Location: ./teamhub/services/team_service.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Team Membership Service.
This module owns every rule governing teams and their memberships:
creation, listing, updates, joining, quitting with ownership transfer,
and dissolution.

Joins are serialized across all service instances by a single cluster
lock; every other operation relies on database transactions only.

Examples:
    >>> from unittest.mock import Mock
    >>> service = TeamService(Mock())
    >>> isinstance(service, TeamService)
    True
    >>> hasattr(service, 'db')
    True
"""

# Standard
from datetime import datetime, timezone
from typing import Dict, List, Optional, Set

# Third-Party
from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session
from sqlalchemy.sql import Select

# First-Party
from teamhub.auth import is_admin
from teamhub.config import settings
from teamhub.db import Team, User, UserTeam, utc_now
from teamhub.schemas import TeamCreate, TeamDeleteRequest, TeamJoinRequest, TeamQuery, TeamQuitRequest, TeamRead, TeamStatus, TeamUpdate, TeamUserView, UserPublic
from teamhub.services.logging_service import LoggingService
from teamhub.utils.cluster_lock import ClusterLock, ClusterLockProvider, get_lock_provider, LockInterruptedError, LockUnavailableError

# Initialize logging
logging_service = LoggingService()
logger = logging_service.get_logger(__name__)


class TeamManagementError(Exception):
    """Base class for team management-related errors.

    Examples:
        >>> error = TeamManagementError("Test error")
        >>> str(error)
        'Test error'
        >>> isinstance(error, Exception)
        True
    """


class TeamParameterError(TeamManagementError):
    """Raised when input is missing, malformed or out of range.

    Examples:
        >>> error = TeamParameterError("Team is full")
        >>> isinstance(error, TeamManagementError)
        True
    """


class TeamAuthorizationError(TeamManagementError):
    """Raised when the caller lacks rights for the action.

    Examples:
        >>> isinstance(TeamAuthorizationError("No permission"), TeamManagementError)
        True
    """


class TeamNotFoundError(TeamManagementError):
    """Raised when a team or membership does not exist.

    Examples:
        >>> str(TeamNotFoundError("Team not found"))
        'Team not found'
    """


class TeamSystemError(TeamManagementError):
    """Raised when persistence fails or an invariant is broken after validation passed."""


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return ``value`` as an aware UTC datetime; naive values are taken as UTC.

    Args:
        value: Datetime or None.

    Returns:
        Optional[datetime]: Aware UTC datetime or None.

    Examples:
        >>> ensure_utc(datetime(2030, 5, 1, 12)).isoformat()
        '2030-05-01T12:00:00+00:00'
        >>> ensure_utc(None) is None
        True
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class TeamService:
    """Service for team membership operations.

    Attributes:
        db (Session): SQLAlchemy database session

    Examples:
        >>> from unittest.mock import Mock
        >>> db_session = Mock()
        >>> service = TeamService(db_session)
        >>> service.db is db_session
        True
    """

    def __init__(self, db: Session, lock_provider: Optional[ClusterLockProvider] = None):
        """Initialize the team service.

        Args:
            db: SQLAlchemy database session
            lock_provider: Lock provider for the join lock; the shared provider is used when omitted
        """
        self.db = db
        self._lock_provider = lock_provider

    async def _get_lock(self, name: str) -> ClusterLock:
        """Return a fresh handle on a named cluster lock.

        Args:
            name: Lock key

        Returns:
            ClusterLock: Unacquired handle

        Raises:
            TeamSystemError: If the configured lock backend is unreachable
        """
        if self._lock_provider is None:
            try:
                self._lock_provider = await get_lock_provider()
            except LockUnavailableError as e:
                logger.error(f"Cannot obtain lock {name}: {e}")
                raise TeamSystemError("Team locking is temporarily unavailable") from e
        return self._lock_provider.get_lock(name)

    async def _ensure_lock_held(self, lock: Optional[ClusterLock]) -> None:
        """Check a lock is still owned right before committing work it guards.

        A Redis lease can lapse if renewal fails; committing after that would
        no longer be serialized.

        Args:
            lock: Guarding lock, or None when the write is unguarded

        Raises:
            TeamSystemError: If the lock was lost
        """
        if lock is not None and not await lock.is_held():
            logger.error(f"Lock {lock.name} was lost before commit")
            raise TeamSystemError("Lock was lost before the change could be saved, please retry")

    # ------------------------------------------------------------------
    # Validation helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _require_user(acting_user: Optional[User]) -> User:
        """Return the acting user or fail.

        Args:
            acting_user: Caller

        Returns:
            User: The caller

        Raises:
            TeamParameterError: If there is no caller
        """
        if acting_user is None:
            raise TeamParameterError("User is not logged in")
        return acting_user

    @staticmethod
    def _validate_name(name: Optional[str]) -> None:
        """Check a team name is non-blank and within the length limit.

        Args:
            name: Proposed name

        Raises:
            TeamParameterError: If the name is blank or too long

        Examples:
            >>> TeamService._validate_name("ok") is None
            True
            >>> try:
            ...     TeamService._validate_name("   ")
            ... except TeamParameterError as e:
            ...     print(e)
            Team name must be 1 to 20 characters
        """
        if not name or not name.strip() or len(name) > settings.team_name_max_length:
            raise TeamParameterError(f"Team name must be 1 to {settings.team_name_max_length} characters")

    @staticmethod
    def _validate_description(description: Optional[str]) -> None:
        """Check an optional description is within the length limit.

        Args:
            description: Proposed description

        Raises:
            TeamParameterError: If the description is too long
        """
        if description and len(description) > settings.team_description_max_length:
            raise TeamParameterError("Team description is too long")

    @staticmethod
    def _validate_avatar_url(avatar_url: Optional[str]) -> None:
        """Check an optional avatar URL fits the column.

        Args:
            avatar_url: Proposed URL

        Raises:
            TeamParameterError: If the URL is too long
        """
        if avatar_url and len(avatar_url) > settings.team_avatar_url_max_length:
            raise TeamParameterError("Team avatar URL is too long")

    @staticmethod
    def _validate_secret_password(password: Optional[str]) -> None:
        """Check a secret team's password is non-blank and within the length limit.

        Args:
            password: Proposed password

        Raises:
            TeamParameterError: If the password is blank or too long
        """
        if not password or not password.strip() or len(password) > settings.team_password_max_length:
            raise TeamParameterError(f"Secret teams need a password of 1 to {settings.team_password_max_length} characters")

    def _get_team(self, team_id: Optional[int]) -> Team:
        """Load a team or fail.

        Args:
            team_id: Team id from the request

        Returns:
            Team: The stored team

        Raises:
            TeamParameterError: If the id is missing or not positive
            TeamNotFoundError: If no such team exists
        """
        if team_id is None or team_id <= 0:
            raise TeamParameterError("Invalid team id")
        team = self.db.get(Team, team_id)
        if team is None:
            raise TeamNotFoundError("Team not found")
        return team

    def _count_memberships(self, team_id: Optional[int] = None, user_id: Optional[int] = None) -> int:
        """Count memberships, optionally narrowed to a team, a user or both.

        Args:
            team_id: Team to count members of
            user_id: User to count teams of

        Returns:
            int: Number of matching memberships
        """
        query = select(func.count(UserTeam.id))  # pylint: disable=not-callable
        if team_id is not None:
            query = query.where(UserTeam.team_id == team_id)
        if user_id is not None:
            query = query.where(UserTeam.user_id == user_id)
        return self.db.execute(query).scalar_one()

    def _count_owned_teams(self, user_id: int) -> int:
        """Count teams a user currently owns.

        Args:
            user_id: Owner id

        Returns:
            int: Number of owned teams
        """
        return self.db.execute(select(func.count(Team.id)).where(Team.user_id == user_id)).scalar_one()  # pylint: disable=not-callable

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    async def create_team(self, team_create: Optional[TeamCreate], acting_user: Optional[User]) -> int:
        """Create a team owned by the acting user, who also becomes its first member.

        Checks run in order and the first violation wins.

        Args:
            team_create: Team attributes
            acting_user: The creating user

        Returns:
            int: The new team id

        Raises:
            TeamParameterError: If any attribute is invalid or the user already owns the maximum number of teams
            TeamSystemError: If the team or owner membership cannot be persisted

        Examples:
            >>> import asyncio
            >>> from unittest.mock import Mock
            >>> service = TeamService(Mock())
            >>> try:
            ...     asyncio.run(service.create_team(TeamCreate(name="x", max_members=2), None))
            ... except TeamParameterError as e:
            ...     print(e)
            User is not logged in
        """
        if team_create is None:
            raise TeamParameterError("Request body is required")
        user = self._require_user(acting_user)

        self._validate_name(team_create.name)
        self._validate_description(team_create.description)
        self._validate_avatar_url(team_create.avatar_url)

        max_members = team_create.max_members or 0
        if max_members < settings.team_min_members or max_members > settings.team_max_members:
            raise TeamParameterError(f"Team size must be between {settings.team_min_members} and {settings.team_max_members}")

        status = TeamStatus.from_value(TeamStatus.PUBLIC if team_create.status is None else team_create.status)
        if status is None:
            raise TeamParameterError("Invalid team status")

        password = ""
        if status == TeamStatus.SECRET:
            self._validate_secret_password(team_create.password)
            password = team_create.password

        expire_time = ensure_utc(team_create.expire_time)
        if expire_time is not None and expire_time <= utc_now():
            raise TeamParameterError("Expire time must be in the future")

        team = Team(
            name=team_create.name,
            description=team_create.description,
            max_members=max_members,
            expire_time=expire_time,
            status=int(status),
            password=password,
            avatar_url=team_create.avatar_url,
        )

        if not settings.team_create_lock_enabled:
            # Count-then-insert is not atomic: concurrent creates by one user can pass the cap together
            return await self._insert_team(team, user.id)

        lock = await self._get_lock(settings.create_lock_name(user.id))
        try:
            await lock.acquire()
            return await self._insert_team(team, user.id, lock)
        except LockInterruptedError as e:
            logger.error(f"Team creation by user {user.id} aborted: {e}")
            raise TeamSystemError("Team creation was interrupted") from e
        finally:
            if await lock.is_held():
                await lock.release()

    async def _insert_team(self, team: Team, user_id: int, lock: Optional[ClusterLock] = None) -> int:
        """Enforce the ownership cap, then persist a team with its owner membership.

        Args:
            team: Validated, unsaved team
            user_id: Owner id
            lock: Per-user create lock when creation is serialized

        Returns:
            int: The new team id

        Raises:
            TeamParameterError: If the user already owns the maximum number of teams
            TeamSystemError: If the create lock was lost or the write fails
        """
        if self._count_owned_teams(user_id) >= settings.max_teams_per_user:
            raise TeamParameterError(f"A user can create at most {settings.max_teams_per_user} teams")
        await self._ensure_lock_held(lock)

        try:
            team.user_id = user_id
            self.db.add(team)
            self.db.flush()  # Get the team ID

            self.db.add(UserTeam(team_id=team.id, user_id=user_id, join_time=utc_now()))
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create team '{team.name}' for user {user_id}: {e}")
            raise TeamSystemError("Failed to create team") from e

        logger.info(f"Created team {team.id} '{team.name}' by user {user_id}")
        return team.id

    # ------------------------------------------------------------------
    # Read
    # ------------------------------------------------------------------

    async def get_team_by_id(self, team_id: Optional[int]) -> TeamRead:
        """Get a team by id.

        Args:
            team_id: Team id

        Returns:
            TeamRead: The team, password blanked

        Raises:
            TeamParameterError: If the id is missing or not positive
            TeamNotFoundError: If the team does not exist
        """
        team = self._get_team(team_id)
        view = TeamRead.model_validate(team)
        view.password = ""
        self.db.commit()  # Release transaction to avoid idle-in-transaction
        return view

    def _build_list_query(self, team_query: Optional[TeamQuery], acting_user: Optional[User], check_visibility: bool) -> Select:
        """Translate a team filter into a SELECT.

        Args:
            team_query: Filter; None filters nothing except visibility and expiry
            acting_user: Caller, used for the private-visibility check
            check_visibility: Apply the status filter and its admin rule

        Returns:
            Select: Query over ``Team``

        Raises:
            TeamAuthorizationError: If a non-admin filters for private teams
        """
        query = select(Team)
        team_query = team_query or TeamQuery()

        if team_query.id is not None and team_query.id > 0:
            query = query.where(Team.id == team_query.id)
        if team_query.id_list:
            query = query.where(Team.id.in_(team_query.id_list))
        if team_query.search_text and team_query.search_text.strip():
            query = query.where(
                or_(
                    Team.name.contains(team_query.search_text, autoescape=True),
                    Team.description.contains(team_query.search_text, autoescape=True),
                )
            )
        if team_query.name and team_query.name.strip():
            query = query.where(Team.name.contains(team_query.name, autoescape=True))
        if team_query.description and team_query.description.strip():
            query = query.where(Team.description.contains(team_query.description, autoescape=True))
        if team_query.max_members is not None and team_query.max_members > 0:
            query = query.where(Team.max_members == team_query.max_members)
        if team_query.user_id is not None and team_query.user_id > 0:
            query = query.where(Team.user_id == team_query.user_id)

        if check_visibility:
            status = TeamStatus.from_value(team_query.status) or TeamStatus.PUBLIC
            if status == TeamStatus.PRIVATE and not is_admin(acting_user):
                raise TeamAuthorizationError("Only admins can list private teams")
            query = query.where(Team.status == int(status))

        # Teams without an expire time never expire
        query = query.where(or_(Team.expire_time > utc_now(), Team.expire_time.is_(None)))
        return query.order_by(Team.id)

    def _assemble_views(self, teams: List[Team], acting_user: Optional[User]) -> List[TeamUserView]:
        """Attach owner profiles, member counts and the caller's membership to each team.

        Args:
            teams: Teams to render
            acting_user: Caller; None means no team counts as joined

        Returns:
            List[TeamUserView]: Views in the order given, passwords blanked
        """
        if not teams:
            return []

        team_ids = [team.id for team in teams]
        owner_ids = {team.user_id for team in teams}

        owners: Dict[int, User] = {user.id: user for user in self.db.execute(select(User).where(User.id.in_(owner_ids))).scalars()}
        counts: Dict[int, int] = dict(
            self.db.execute(select(UserTeam.team_id, func.count(UserTeam.id)).where(UserTeam.team_id.in_(team_ids)).group_by(UserTeam.team_id)).all()  # pylint: disable=not-callable
        )
        joined: Set[int] = set()
        if acting_user is not None:
            joined = set(self.db.execute(select(UserTeam.team_id).where(UserTeam.user_id == acting_user.id, UserTeam.team_id.in_(team_ids))).scalars())

        views = []
        for team in teams:
            view = TeamUserView.model_validate(team)
            view.password = ""
            owner = owners.get(team.user_id)
            if owner is not None:
                view.create_user = UserPublic.model_validate(owner)
            view.has_join = team.id in joined
            view.has_join_num = counts.get(team.id, 0)
            views.append(view)
        return views

    async def list_teams(self, team_query: Optional[TeamQuery], acting_user: Optional[User]) -> List[TeamUserView]:
        """List unexpired teams matching a filter.

        The status filter defaults to public when absent or unrecognized;
        only admins may list private teams.

        Args:
            team_query: Filter
            acting_user: Caller

        Returns:
            List[TeamUserView]: Matching teams

        Raises:
            TeamAuthorizationError: If a non-admin asks for private teams
        """
        query = self._build_list_query(team_query, acting_user, check_visibility=True)
        teams = list(self.db.execute(query).scalars())
        views = self._assemble_views(teams, acting_user)
        self.db.commit()  # Release transaction to avoid idle-in-transaction
        return views

    async def list_teams_by_membership(self, team_query: Optional[TeamQuery], acting_user: Optional[User]) -> List[TeamUserView]:
        """List unexpired teams matching a filter, regardless of visibility.

        Meant for id-scoped views ("teams I created", "teams I joined").

        Args:
            team_query: Filter, normally carrying ``id_list``
            acting_user: Caller

        Returns:
            List[TeamUserView]: Matching teams
        """
        query = self._build_list_query(team_query, acting_user, check_visibility=False)
        teams = list(self.db.execute(query).scalars())
        views = self._assemble_views(teams, acting_user)
        self.db.commit()  # Release transaction to avoid idle-in-transaction
        return views

    async def list_my_created_teams(self, team_query: Optional[TeamQuery], acting_user: Optional[User]) -> List[TeamUserView]:
        """List the unexpired teams the acting user owns.

        Args:
            team_query: Additional filter
            acting_user: Caller

        Returns:
            List[TeamUserView]: Owned teams

        Raises:
            TeamParameterError: If no user is given
        """
        user = self._require_user(acting_user)
        query = (team_query or TeamQuery()).model_copy()
        query.id_list = list(self.db.execute(select(Team.id).where(Team.user_id == user.id)).scalars())
        query.user_id = user.id
        return await self.list_teams_by_membership(query, user)

    async def list_my_joined_teams(self, team_query: Optional[TeamQuery], acting_user: Optional[User]) -> List[TeamUserView]:
        """List the unexpired teams the acting user is a member of.

        Args:
            team_query: Additional filter
            acting_user: Caller

        Returns:
            List[TeamUserView]: Joined teams, empty when the user has no memberships

        Raises:
            TeamParameterError: If no user is given
        """
        user = self._require_user(acting_user)
        team_ids = list(self.db.execute(select(UserTeam.team_id).where(UserTeam.user_id == user.id).distinct()).scalars())
        if not team_ids:
            self.db.commit()
            return []
        query = (team_query or TeamQuery()).model_copy()
        query.id_list = team_ids
        return await self.list_teams_by_membership(query, user)

    # ------------------------------------------------------------------
    # Update
    # ------------------------------------------------------------------

    async def update_team(self, team_update: Optional[TeamUpdate], acting_user: Optional[User]) -> bool:
        """Update team attributes.

        Only the owner or an admin may update. Absent fields are left
        unchanged; a patch that matches the stored values writes nothing.
        Making a team secret needs a password in the same patch, and any
        non-secret status clears the stored password.

        Args:
            team_update: Patch
            acting_user: Caller

        Returns:
            bool: True on success

        Raises:
            TeamParameterError: If the patch is invalid
            TeamNotFoundError: If the team does not exist
            TeamAuthorizationError: If the caller is neither owner nor admin
            TeamSystemError: If the update cannot be persisted
        """
        if team_update is None:
            raise TeamParameterError("Request body is required")
        user = self._require_user(acting_user)
        team = self._get_team(team_update.id)

        if team.user_id != user.id and not is_admin(user):
            raise TeamAuthorizationError("Only the team owner or an admin can update the team")

        changes = {}
        patch = {
            "name": team_update.name,
            "description": team_update.description,
            "avatar_url": team_update.avatar_url,
            "expire_time": ensure_utc(team_update.expire_time),
            "status": team_update.status,
            "password": team_update.password,
        }
        for field, value in patch.items():
            if value is not None and getattr(team, field) != value:
                changes[field] = value

        if not changes:
            logger.debug(f"Update of team {team.id} matches stored values; nothing to write")
            self.db.commit()
            return True

        if "name" in changes:
            self._validate_name(changes["name"])
        if "description" in changes:
            self._validate_description(changes["description"])
        if "avatar_url" in changes:
            self._validate_avatar_url(changes["avatar_url"])

        target_status = TeamStatus.from_value(team.status)
        if team_update.status is not None:
            target_status = TeamStatus.from_value(team_update.status)
            if target_status is None:
                raise TeamParameterError("Invalid team status")
            if target_status == TeamStatus.SECRET and (not team_update.password or not team_update.password.strip()):
                raise TeamParameterError("A password is required to make a team secret")

        if target_status == TeamStatus.SECRET:
            if "password" in changes:
                self._validate_secret_password(changes["password"])
        elif team.password:
            changes["password"] = ""
        else:
            changes.pop("password", None)

        if not changes:
            self.db.commit()
            return True

        try:
            for field, value in changes.items():
                setattr(team, field, value)
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update team {team_update.id}: {e}")
            raise TeamSystemError("Failed to update team") from e

        logger.info(f"Updated team {team_update.id} ({', '.join(sorted(changes))}) by user {user.id}")
        return True

    # ------------------------------------------------------------------
    # Join
    # ------------------------------------------------------------------

    async def join_team(self, team_join: Optional[TeamJoinRequest], acting_user: Optional[User]) -> bool:
        """Join a team.

        Existence, expiry, visibility and password are checked first. The
        capacity, per-user cap and duplicate checks and the insert then run
        under the cluster-wide join lock, which is waited on indefinitely and
        always released by the handle that acquired it.

        Args:
            team_join: Team id and, for secret teams, the password
            acting_user: Caller

        Returns:
            bool: True when joined, False when the lock wait was interrupted

        Raises:
            TeamParameterError: If the team expired, the password is wrong, the team is full,
                the user is at the join limit or already a member
            TeamAuthorizationError: If the team is private
            TeamNotFoundError: If the team does not exist
            TeamSystemError: If the membership cannot be persisted
        """
        if team_join is None:
            raise TeamParameterError("Request body is required")
        user = self._require_user(acting_user)
        team = self._get_team(team_join.team_id)

        if team.expire_time is not None and team.expire_time < utc_now():
            raise TeamParameterError("Team has expired")

        status = TeamStatus.from_value(team.status)
        if status == TeamStatus.PRIVATE:
            raise TeamAuthorizationError("Private teams cannot be joined")
        if status == TeamStatus.SECRET and team_join.password != team.password:
            raise TeamParameterError("Incorrect team password")

        team_id, max_members = team.id, team.max_members
        self.db.commit()  # Do not hold a transaction while waiting for the lock

        lock = await self._get_lock(settings.join_lock_name)
        try:
            await lock.acquire()
            return await self._insert_membership(team_id, max_members, user.id, lock)
        except LockInterruptedError as e:
            logger.error(f"Join of team {team_id} by user {user.id} aborted: {e}")
            return False
        finally:
            # Only release a lock this handle holds
            if await lock.is_held():
                await lock.release()

    async def _insert_membership(self, team_id: int, max_members: int, user_id: int, lock: ClusterLock) -> bool:
        """Run the capacity, cap and duplicate checks and insert the membership.

        Must be called while holding the join lock.

        Args:
            team_id: Team to join
            max_members: Team capacity
            user_id: Joining user
            lock: The held join lock

        Returns:
            bool: True once the membership is committed

        Raises:
            TeamNotFoundError: If the team was deleted meanwhile
            TeamParameterError: If the team is full, the user is at the join limit or already a member
            TeamSystemError: If the join lock was lost or the write fails
        """
        if not self.db.execute(select(func.count(Team.id)).where(Team.id == team_id)).scalar_one():  # pylint: disable=not-callable
            raise TeamNotFoundError("Team not found")
        if self._count_memberships(team_id=team_id) >= max_members:
            raise TeamParameterError("Team is full")
        if self._count_memberships(user_id=user_id) >= settings.max_joined_teams_per_user:
            raise TeamParameterError(f"A user can join at most {settings.max_joined_teams_per_user} teams")
        if self._count_memberships(team_id=team_id, user_id=user_id) > 0:
            raise TeamParameterError("User has already joined this team")
        await self._ensure_lock_held(lock)

        try:
            self.db.add(UserTeam(team_id=team_id, user_id=user_id, join_time=utc_now()))
            self.db.commit()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to add user {user_id} to team {team_id}: {e}")
            raise TeamSystemError("Failed to join team") from e

        logger.info(f"User {user_id} joined team {team_id}")
        return True

    # ------------------------------------------------------------------
    # Quit / delete
    # ------------------------------------------------------------------

    async def quit_team(self, team_quit: Optional[TeamQuitRequest], acting_user: Optional[User]) -> bool:
        """Leave a team.

        The last member leaving dissolves the team. An owner leaving a team
        with other members hands ownership to the earliest remaining member
        (by membership id). Runs in one transaction.

        Args:
            team_quit: Team id
            acting_user: Caller

        Returns:
            bool: True on success

        Raises:
            TeamParameterError: If the request or team id is invalid
            TeamNotFoundError: If the team does not exist or the caller is not a member
            TeamSystemError: If no successor owner exists or the change cannot be persisted
        """
        if team_quit is None:
            raise TeamParameterError("Request body is required")
        user = self._require_user(acting_user)
        team = self._get_team(team_quit.team_id)
        team_id = team.id

        membership = self.db.execute(select(UserTeam).where(UserTeam.team_id == team_id, UserTeam.user_id == user.id)).scalar_one_or_none()
        if membership is None:
            raise TeamNotFoundError("User is not in this team")

        try:
            if self._count_memberships(team_id=team_id) == 1:
                self.db.delete(team)
                logger.info(f"Team {team_id} dissolved: last member {user.id} left")
            elif team.user_id == user.id:
                successor = self.db.execute(
                    select(UserTeam).where(UserTeam.team_id == team_id, UserTeam.user_id != user.id).order_by(UserTeam.id.asc()).limit(1)
                ).scalar_one_or_none()
                if successor is None:
                    raise TeamSystemError(f"No member can take over team {team_id}")
                team.user_id = successor.user_id
                logger.info(f"Ownership of team {team_id} passed from user {user.id} to user {successor.user_id}")

            self.db.delete(membership)
            self.db.commit()
        except TeamManagementError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to remove user {user.id} from team {team_id}: {e}")
            raise TeamSystemError("Failed to quit team") from e

        logger.info(f"User {user.id} left team {team_id}")
        return True

    async def delete_team(self, team_delete: Optional[TeamDeleteRequest], acting_user: Optional[User]) -> bool:
        """Dissolve a team. Owner only; admins get no override here.

        Args:
            team_delete: Team id
            acting_user: Caller

        Returns:
            bool: True on success

        Raises:
            TeamParameterError: If the request or team id is invalid
            TeamNotFoundError: If the team does not exist
            TeamAuthorizationError: If the caller is not the owner
            TeamSystemError: If memberships or the team cannot be deleted
        """
        if team_delete is None:
            raise TeamParameterError("Request body is required")
        user = self._require_user(acting_user)
        team = self._get_team(team_delete.team_id)
        team_id = team.id

        if team.user_id != user.id:
            raise TeamAuthorizationError("Only the team owner can delete the team")

        try:
            memberships = list(self.db.execute(select(UserTeam).where(UserTeam.team_id == team_id)).scalars())
            if not memberships:
                raise TeamSystemError(f"Team {team_id} has no memberships to delete")
            for membership in memberships:
                self.db.delete(membership)
            self.db.flush()

            self.db.delete(team)
            self.db.commit()
        except TeamManagementError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete team {team_id}: {e}")
            raise TeamSystemError("Failed to delete team") from e

        logger.info(f"Deleted team {team_id} by user {user.id}")
        return True
