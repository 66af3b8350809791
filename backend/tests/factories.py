"""
TeamClock - Test Helpers
========================

Builders and a controllable clock shared by fixtures and tests.
"""

from typing import Optional
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

from teamclock.api.deps import create_identity_token
from teamclock.core.config import settings
from teamclock.core.models import SessionStatus, User, WorkSession

UTC = ZoneInfo("UTC")

# 2024-03-15 12:00:00 UTC (a Friday)
NOON_MS = 1_710_504_000_000
MINUTE_MS = 60_000
HOUR_MS = 60 * MINUTE_MS
DAY_MS = 24 * HOUR_MS


class FakeClock:
    """Manually advanced epoch-ms clock."""

    def __init__(self, now: int = NOON_MS):
        self.now = now

    def __call__(self) -> int:
        return self.now

    def advance(self, ms: int) -> None:
        self.now += ms


def make_user(name: str, company_id: Optional[UUID] = None) -> User:
    """Transient user, ready to be added to any backend."""
    return User(
        id=uuid4(),
        external_identity_id=f"idp|{uuid4().hex[:12]}",
        name=name,
        role="",
        avatar_ref=settings.DEFAULT_AVATAR_REF,
        company_id=company_id,
    )


def make_session(
    user_id: UUID,
    project_name: str,
    start_time: int,
    duration_ms: Optional[int] = None,
    tokens_input: Optional[int] = None,
    tokens_output: Optional[int] = None,
) -> WorkSession:
    """Transient session; completed when a duration is given."""
    completed = duration_ms is not None
    return WorkSession(
        id=uuid4(),
        user_id=user_id,
        project_name=project_name,
        start_time=start_time,
        end_time=start_time + duration_ms if completed else None,
        tokens_input=tokens_input,
        tokens_output=tokens_output,
        status=SessionStatus.COMPLETED if completed else SessionStatus.ACTIVE,
    )


def headers_for(user: User) -> dict[str, str]:
    token = create_identity_token(user.external_identity_id)
    return {"Authorization": f"Bearer {token}"}
