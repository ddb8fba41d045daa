# -*- coding: utf-8 -*-
"""Location: ./teamhub/db.py
Copyright 2025
SPDX-License-Identifier: Apache-2.0

teamhub Database Models.
SQLAlchemy ORM models, engine and session factory for the relational store.

Tables:
- users: platform users (owned by the account system, read here)
- teams: capacity-limited teams with an owner and a visibility status
- user_teams: team membership; the autoincrement id records join order

Examples:
    >>> Team.__tablename__, UserTeam.__tablename__
    ('teams', 'user_teams')
    >>> utc_now().tzinfo is not None
    True
"""

# Standard
from datetime import datetime, timezone
from typing import Generator, List, Optional

# Third-Party
from sqlalchemy import create_engine, DateTime, ForeignKey, Integer, String, Text, TypeDecorator, UniqueConstraint
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship, Session, sessionmaker

# First-Party
from teamhub.config import settings

engine = create_engine(settings.database_url, **settings.database_settings)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

ADMIN_ROLE = 1


def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime.

    Returns:
        datetime: Current UTC time.
    """
    return datetime.now(timezone.utc)


class UTCDateTime(TypeDecorator):
    """DateTime column that always hands back timezone-aware UTC values.

    SQLite drops tzinfo on the way in; values are normalized to naive UTC
    when stored and re-tagged as UTC when loaded.

    Examples:
        >>> col = UTCDateTime()
        >>> aware = datetime(2030, 1, 1, 8, tzinfo=timezone.utc)
        >>> col.process_bind_param(aware, None)
        datetime.datetime(2030, 1, 1, 8, 0)
        >>> col.process_result_value(datetime(2030, 1, 1, 8), None).tzinfo
        datetime.timezone.utc
    """

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class Base(DeclarativeBase):
    """Declarative base for all teamhub models."""


class User(Base):
    """Platform user. Only ``id`` and ``user_role`` matter to team rules."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[Optional[str]] = mapped_column(String(256), nullable=True)
    user_account: Mapped[str] = mapped_column(String(256), unique=True, nullable=False)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    gender: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    profile: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    phone: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    email: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    tags: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    user_role: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, nullable=False)

    def __repr__(self) -> str:
        return f"<User(id={self.id}, user_account='{self.user_account}')>"


class Team(Base):
    """A team. ``user_id`` is the current owner, who is always a member."""

    __tablename__ = "teams"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(256), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    avatar_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)
    max_members: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    expire_time: Mapped[Optional[datetime]] = mapped_column(UTCDateTime, nullable=True, index=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    status: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    password: Mapped[str] = mapped_column(String(512), nullable=False, default="")
    created_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, onupdate=utc_now, nullable=False)

    memberships: Mapped[List["UserTeam"]] = relationship("UserTeam", back_populates="team", passive_deletes=True)

    def __repr__(self) -> str:
        return f"<Team(id={self.id}, name='{self.name}', owner={self.user_id}, status={self.status})>"


class UserTeam(Base):
    """Membership of a user in a team."""

    __tablename__ = "user_teams"
    __table_args__ = (UniqueConstraint("team_id", "user_id", name="uq_user_teams_team_user"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    team_id: Mapped[int] = mapped_column(Integer, ForeignKey("teams.id", ondelete="CASCADE"), nullable=False, index=True)
    join_time: Mapped[datetime] = mapped_column(UTCDateTime, default=utc_now, nullable=False)

    team: Mapped["Team"] = relationship("Team", back_populates="memberships")

    def __repr__(self) -> str:
        return f"<UserTeam(id={self.id}, team_id={self.team_id}, user_id={self.user_id})>"


def get_db() -> Generator[Session, None, None]:
    """Database dependency.

    Commits on successful completion and rolls back explicitly on exception.

    Yields:
        Session: SQLAlchemy database session

    Raises:
        Exception: Re-raises any exception after rolling back the transaction.
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db() -> None:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(bind=engine)
