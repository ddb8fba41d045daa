# -*- coding: utf-8 -*-
"""Location: ./teamhub/routers/team_router.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

Team Router.
HTTP endpoints for team management. Every endpoint requires an
authenticated user; the work is delegated to ``TeamService`` and its
errors are mapped to status codes here.
"""

# Standard
from typing import List, Optional

# Third-Party
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

# First-Party
from teamhub.auth import get_current_user
from teamhub.db import get_db, User
from teamhub.schemas import TeamCreate, TeamDeleteRequest, TeamJoinRequest, TeamQuery, TeamQuitRequest, TeamRead, TeamUpdate, TeamUserView
from teamhub.services.logging_service import LoggingService
from teamhub.services.team_service import (
    TeamAuthorizationError,
    TeamManagementError,
    TeamNotFoundError,
    TeamParameterError,
    TeamService,
    TeamSystemError,
)

# Initialize logging
logging_service = LoggingService()
logger = logging_service.get_logger(__name__)

# Create router
team_router = APIRouter()

_STATUS_BY_ERROR = (
    (TeamParameterError, status.HTTP_400_BAD_REQUEST),
    (TeamAuthorizationError, status.HTTP_403_FORBIDDEN),
    (TeamNotFoundError, status.HTTP_404_NOT_FOUND),
    (TeamSystemError, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def get_team_service(db: Session = Depends(get_db)) -> TeamService:
    """Build a team service bound to the request's session.

    Args:
        db: Database session

    Returns:
        TeamService: Service instance
    """
    return TeamService(db)


def _to_http_exception(error: TeamManagementError) -> HTTPException:
    """Map a team error to an HTTP exception.

    Args:
        error: Raised service error

    Returns:
        HTTPException: Exception carrying the mapped status and the error message

    Examples:
        >>> _to_http_exception(TeamNotFoundError("Team not found")).status_code
        404
        >>> _to_http_exception(TeamManagementError("boom")).status_code
        500
    """
    for error_type, status_code in _STATUS_BY_ERROR:
        if isinstance(error, error_type):
            return HTTPException(status_code=status_code, detail=str(error))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(error))


def _team_query(
    id: Optional[int] = Query(None, description="Exact team id"),  # pylint: disable=redefined-builtin
    id_list: Optional[List[int]] = Query(None, description="Restrict to these team ids"),
    search_text: Optional[str] = Query(None, description="Substring of name or description"),
    name: Optional[str] = Query(None),
    description: Optional[str] = Query(None),
    max_members: Optional[int] = Query(None),
    user_id: Optional[int] = Query(None, description="Owner id"),
    status: Optional[int] = Query(None, description="0 public, 1 private, 2 secret"),  # pylint: disable=redefined-outer-name
) -> TeamQuery:
    return TeamQuery(
        id=id,
        id_list=id_list,
        search_text=search_text,
        name=name,
        description=description,
        max_members=max_members,
        user_id=user_id,
        status=status,
    )


@team_router.post("/add", response_model=int, summary="Create Team", responses={400: {"description": "Invalid team attributes"}})
async def add_team(
    team_create: TeamCreate,
    service: TeamService = Depends(get_team_service),
    current_user: User = Depends(get_current_user),
) -> int:
    """Create a team owned by the caller.

    Args:
        team_create: Team attributes
        service: Team service
        current_user: Authenticated user

    Returns:
        int: New team id

    Raises:
        HTTPException: Mapped from the service error
    """
    try:
        return await service.create_team(team_create, current_user)
    except TeamManagementError as e:
        logger.warning(f"Team creation rejected for user {current_user.id}: {e}")
        raise _to_http_exception(e)


@team_router.post("/delete", response_model=bool, summary="Delete Team")
async def delete_team(
    team_delete: TeamDeleteRequest,
    service: TeamService = Depends(get_team_service),
    current_user: User = Depends(get_current_user),
) -> bool:
    """Dissolve a team owned by the caller.

    Args:
        team_delete: Team id
        service: Team service
        current_user: Authenticated user

    Returns:
        bool: True on success

    Raises:
        HTTPException: Mapped from the service error
    """
    try:
        return await service.delete_team(team_delete, current_user)
    except TeamManagementError as e:
        logger.warning(f"Team deletion rejected for user {current_user.id}: {e}")
        raise _to_http_exception(e)


@team_router.post("/update", response_model=bool, summary="Update Team")
async def update_team(
    team_update: TeamUpdate,
    service: TeamService = Depends(get_team_service),
    current_user: User = Depends(get_current_user),
) -> bool:
    """Patch a team's attributes.

    Args:
        team_update: Patch
        service: Team service
        current_user: Authenticated user

    Returns:
        bool: True on success

    Raises:
        HTTPException: Mapped from the service error
    """
    try:
        return await service.update_team(team_update, current_user)
    except TeamManagementError as e:
        logger.warning(f"Team update rejected for user {current_user.id}: {e}")
        raise _to_http_exception(e)


@team_router.get("/get", response_model=TeamRead, summary="Get Team")
async def get_team(
    id: int = Query(..., description="Team id"),  # pylint: disable=redefined-builtin
    service: TeamService = Depends(get_team_service),
    current_user: User = Depends(get_current_user),
) -> TeamRead:
    """Fetch one team.

    Args:
        id: Team id
        service: Team service
        current_user: Authenticated user

    Returns:
        TeamRead: The team

    Raises:
        HTTPException: Mapped from the service error
    """
    try:
        return await service.get_team_by_id(id)
    except TeamManagementError as e:
        raise _to_http_exception(e)


@team_router.get("/list", response_model=List[TeamUserView], summary="List Teams")
async def list_teams(
    team_query: TeamQuery = Depends(_team_query),
    service: TeamService = Depends(get_team_service),
    current_user: User = Depends(get_current_user),
) -> List[TeamUserView]:
    """List unexpired teams visible to the caller.

    Args:
        team_query: Filter
        service: Team service
        current_user: Authenticated user

    Returns:
        List[TeamUserView]: Matching teams

    Raises:
        HTTPException: Mapped from the service error
    """
    try:
        return await service.list_teams(team_query, current_user)
    except TeamManagementError as e:
        logger.warning(f"Team listing rejected for user {current_user.id}: {e}")
        raise _to_http_exception(e)


@team_router.post("/join", response_model=bool, summary="Join Team")
async def join_team(
    team_join: TeamJoinRequest,
    service: TeamService = Depends(get_team_service),
    current_user: User = Depends(get_current_user),
) -> bool:
    """Join a team.

    Args:
        team_join: Team id and optional password
        service: Team service
        current_user: Authenticated user

    Returns:
        bool: True when joined

    Raises:
        HTTPException: Mapped from the service error, or 500 if the join was interrupted
    """
    try:
        joined = await service.join_team(team_join, current_user)
    except TeamManagementError as e:
        logger.warning(f"Join rejected for user {current_user.id}: {e}")
        raise _to_http_exception(e)

    if not joined:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Join was interrupted, please retry")
    return joined


@team_router.post("/quit", response_model=bool, summary="Quit Team")
async def quit_team(
    team_quit: TeamQuitRequest,
    service: TeamService = Depends(get_team_service),
    current_user: User = Depends(get_current_user),
) -> bool:
    """Leave a team.

    Args:
        team_quit: Team id
        service: Team service
        current_user: Authenticated user

    Returns:
        bool: True on success

    Raises:
        HTTPException: Mapped from the service error
    """
    try:
        return await service.quit_team(team_quit, current_user)
    except TeamManagementError as e:
        logger.warning(f"Quit rejected for user {current_user.id}: {e}")
        raise _to_http_exception(e)


@team_router.get("/list/my/create", response_model=List[TeamUserView], summary="List My Created Teams")
async def list_my_created_teams(
    team_query: TeamQuery = Depends(_team_query),
    service: TeamService = Depends(get_team_service),
    current_user: User = Depends(get_current_user),
) -> List[TeamUserView]:
    """List teams the caller owns.

    Args:
        team_query: Filter
        service: Team service
        current_user: Authenticated user

    Returns:
        List[TeamUserView]: Owned teams

    Raises:
        HTTPException: Mapped from the service error
    """
    try:
        return await service.list_my_created_teams(team_query, current_user)
    except TeamManagementError as e:
        raise _to_http_exception(e)


@team_router.get("/list/my/join", response_model=List[TeamUserView], summary="List My Joined Teams")
async def list_my_joined_teams(
    team_query: TeamQuery = Depends(_team_query),
    service: TeamService = Depends(get_team_service),
    current_user: User = Depends(get_current_user),
) -> List[TeamUserView]:
    """List teams the caller is a member of.

    Args:
        team_query: Filter
        service: Team service
        current_user: Authenticated user

    Returns:
        List[TeamUserView]: Joined teams

    Raises:
        HTTPException: Mapped from the service error
    """
    try:
        return await service.list_my_joined_teams(team_query, current_user)
    except TeamManagementError as e:
        raise _to_http_exception(e)
