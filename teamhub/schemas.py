# -*- coding: utf-8 -*-
"""Location: ./teamhub/schemas.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

teamhub Pydantic Schemas.
Request payloads and response views for team operations.

Request models only coerce types. Business rules (lengths, ranges,
visibility) are enforced by the team service so that every rejection
surfaces through the service error hierarchy.
"""

# Standard
from datetime import datetime
from enum import IntEnum
from typing import List, Optional

# Third-Party
from pydantic import BaseModel, ConfigDict, Field

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------


class TeamStatus(IntEnum):
    """Team visibility status."""

    PUBLIC = 0
    PRIVATE = 1
    SECRET = 2

    @classmethod
    def from_value(cls, value: Optional[int]) -> Optional["TeamStatus"]:
        """Map a raw status value to a member, or None when unrecognized.

        Args:
            value: Raw status value.

        Returns:
            Optional[TeamStatus]: Matching status or None.

        Examples:
            >>> TeamStatus.from_value(2)
            <TeamStatus.SECRET: 2>
            >>> TeamStatus.from_value(9) is None
            True
            >>> TeamStatus.from_value(None) is None
            True
        """
        if value is None:
            return None
        try:
            return cls(value)
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# Requests
# ---------------------------------------------------------------------------


class TeamCreate(BaseModel):
    """Payload for creating a team."""

    name: Optional[str] = None
    description: Optional[str] = None
    avatar_url: Optional[str] = Field(None, description="Team avatar image URL")
    max_members: Optional[int] = Field(None, description="Capacity, 1 to 20")
    expire_time: Optional[datetime] = Field(None, description="Absent means the team never expires")
    status: Optional[int] = Field(None, description="0 public, 1 private, 2 secret; defaults to public")
    password: Optional[str] = Field(None, description="Required for secret teams")


class TeamUpdate(BaseModel):
    """Patch for an existing team. Absent fields are left unchanged."""

    id: Optional[int] = None
    name: Optional[str] = None
    description: Optional[str] = None
    avatar_url: Optional[str] = None
    expire_time: Optional[datetime] = None
    status: Optional[int] = None
    password: Optional[str] = None


class TeamJoinRequest(BaseModel):
    """Payload for joining a team."""

    team_id: Optional[int] = None
    password: Optional[str] = None


class TeamQuitRequest(BaseModel):
    """Payload for leaving a team."""

    team_id: Optional[int] = None


class TeamDeleteRequest(BaseModel):
    """Payload for dissolving a team."""

    team_id: Optional[int] = None


class TeamQuery(BaseModel):
    """Conjunctive team filter. Unset fields do not filter."""

    id: Optional[int] = None
    id_list: Optional[List[int]] = None
    search_text: Optional[str] = Field(None, description="Matched against name or description")
    name: Optional[str] = None
    description: Optional[str] = None
    max_members: Optional[int] = None
    user_id: Optional[int] = Field(None, description="Owner id")
    status: Optional[int] = None


# ---------------------------------------------------------------------------
# Views
# ---------------------------------------------------------------------------


class UserPublic(BaseModel):
    """Redacted user profile attached to team views."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: Optional[str] = None
    user_account: Optional[str] = None
    avatar_url: Optional[str] = None
    gender: Optional[int] = None
    profile: Optional[str] = None
    tags: Optional[str] = None
    user_role: int = 0
    created_at: Optional[datetime] = None


class TeamRead(BaseModel):
    """Team as returned to callers. ``password`` is always blank."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    description: Optional[str] = None
    avatar_url: Optional[str] = None
    max_members: int
    expire_time: Optional[datetime] = None
    user_id: int
    status: int
    password: str = ""
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class TeamUserView(TeamRead):
    """Team with its owner's public profile and the caller's membership state."""

    create_user: Optional[UserPublic] = None
    has_join: bool = False
    has_join_num: int = 0
