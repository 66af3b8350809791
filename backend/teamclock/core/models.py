"""
TeamClock - Database Models
===========================

SQLAlchemy models for all entities.

The in-memory repository backend stores transient instances of these same
classes, so nothing here may depend on an attached session (no lazy
relationships, ids assigned by the caller).
"""

import enum
from datetime import datetime
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy import (
    BigInteger,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column

from teamclock.core.database import Base


# ==========================================================================
# Enums
# ==========================================================================

class SessionStatus(str, enum.Enum):
    """Lifecycle of a tracked work session."""
    ACTIVE = "active"
    COMPLETED = "completed"


# ==========================================================================
# Mixins
# ==========================================================================

class TimestampMixin:
    """Mixin that adds created_at and updated_at timestamps."""

    created_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )
    updated_at: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )


# ==========================================================================
# Models
# ==========================================================================

class Company(Base, TimestampMixin):
    """An organization whose members share presence and statistics."""

    __tablename__ = "companies"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    invite_code: Mapped[str] = mapped_column(
        String(16),
        unique=True,
        index=True,
        nullable=False,
    )  # stored uppercase

    def __repr__(self) -> str:
        return f"<Company {self.name} ({self.invite_code})>"


class User(Base, TimestampMixin):
    """
    Internal user record.

    Keyed externally by the identity provider's stable subject id.
    """

    __tablename__ = "users"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    external_identity_id: Mapped[str] = mapped_column(
        String(255),
        unique=True,
        index=True,
        nullable=False,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    role: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        default="",
    )
    avatar_ref: Mapped[str] = mapped_column(
        String(2000),
        nullable=False,
    )
    company_id: Mapped[Optional[UUID]] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="SET NULL"),
        nullable=True,
        index=True,
    )

    def __repr__(self) -> str:
        return f"<User {self.name}>"


class Project(Base, TimestampMixin):
    """A named project scoped to one company."""

    __tablename__ = "projects"

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    company_id: Mapped[UUID] = mapped_column(
        Uuid,
        ForeignKey("companies.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    description: Mapped[Optional[str]] = mapped_column(
        Text,
        nullable=True,
    )
    repository_url: Mapped[Optional[str]] = mapped_column(
        String(2000),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Project {self.name}>"


class WorkSession(Base):
    """
    One tracked unit of work.

    project_name is a snapshot of the project's name when the session was
    started, not a foreign key: renaming or deleting a project leaves its
    sessions as they were. Times are epoch milliseconds.
    """

    __tablename__ = "sessions"
    __table_args__ = (
        Index("ix_sessions_user_id_status", "user_id", "status"),
        Index("ix_sessions_user_id_start_time", "user_id", "start_time"),
    )

    id: Mapped[UUID] = mapped_column(
        Uuid,
        primary_key=True,
        default=uuid4,
    )
    user_id: Mapped[UUID] = mapped_column(
        Uuid,
        nullable=False,
        index=True,
    )
    project_name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
    )
    start_time: Mapped[int] = mapped_column(
        BigInteger,
        nullable=False,
    )
    end_time: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
    )
    tokens_input: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
    )
    tokens_output: Mapped[Optional[int]] = mapped_column(
        BigInteger,
        nullable=True,
    )
    status: Mapped[SessionStatus] = mapped_column(
        Enum(
            SessionStatus,
            name="sessionstatus",
            values_callable=lambda e: [member.value for member in e],
        ),
        default=SessionStatus.ACTIVE,
        nullable=False,
        index=True,
    )

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    @property
    def duration_seconds(self) -> Optional[int]:
        """Whole seconds between start and end, None while still running."""
        if self.end_time is None:
            return None
        return max(0, (self.end_time - self.start_time) // 1000)

    def elapsed_seconds(self, now_ms: int) -> int:
        """Seconds worked so far; for a running session this moves with now_ms."""
        end = self.end_time if self.end_time is not None else now_ms
        return max(0, (end - self.start_time) // 1000)

    def __repr__(self) -> str:
        return f"<WorkSession {self.project_name} {self.status.value}>"
