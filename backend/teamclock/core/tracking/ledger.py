"""
Session Ledger
==============

Lifecycle of tracked work sessions:

    start ──> ACTIVE ──stop──> COMPLETED

A user may hold any number of active sessions at once, including several
on the same project. Stop is a compare-and-swap on status: only an active
session can be stopped, and a second stop is reported as a conflict instead
of silently overwriting the first one's end time and token counts.
"""

from collections.abc import Collection
from datetime import tzinfo
from typing import Optional
from uuid import UUID, uuid4

import structlog

from teamclock.core.config import settings
from teamclock.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from teamclock.core.models import SessionStatus, WorkSession
from teamclock.core.repositories.base import UnitOfWork
from teamclock.core.tracking.timeutils import Clock, epoch_ms, window_start_ms

logger = structlog.get_logger()


class SessionLedger:
    """
    Records and queries work sessions.

    Args:
        uow: Unit of work providing the session repository
        clock: Returns "now" in epoch ms (injectable for tests)
        tz: Timezone that defines local day boundaries
    """

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Clock = epoch_ms,
        tz: Optional[tzinfo] = None,
    ):
        self.uow = uow
        self.clock = clock
        self.tz = tz or settings.tz
        self.history_default_limit = settings.HISTORY_DEFAULT_LIMIT
        self.history_max_limit = settings.HISTORY_MAX_LIMIT
        self.recent_projects_scan = settings.RECENT_PROJECTS_SCAN

    # ======================================================================
    # Writes
    # ======================================================================

    async def start_session(self, user_id: UUID, project_name: str) -> WorkSession:
        """
        Start tracking work on a project.

        Raises:
            ValidationFailedError: If the project name is blank
        """
        name = (project_name or "").strip()
        if not name:
            raise ValidationFailedError("Project name is required", field="project_name")

        session = WorkSession(
            id=uuid4(),
            user_id=user_id,
            project_name=name,
            start_time=self.clock(),
            end_time=None,
            tokens_input=None,
            tokens_output=None,
            status=SessionStatus.ACTIVE,
        )

        async with self.uow:
            await self.uow.sessions.add(session)
            await self.uow.commit()

        logger.info(
            "Session started",
            session_id=str(session.id),
            user_id=str(user_id),
            project_name=name,
        )
        return session

    async def stop_session(
        self,
        session_id: UUID,
        tokens_input: Optional[int] = None,
        tokens_output: Optional[int] = None,
    ) -> WorkSession:
        """
        Stop an active session, recording its end time and token usage.

        Absent token counts are stored as 0.

        Raises:
            ValidationFailedError: If a token count is negative
            NotFoundError: If the session does not exist
            ConflictError: If the session was already stopped
        """
        tokens_input = tokens_input or 0
        tokens_output = tokens_output or 0
        if tokens_input < 0 or tokens_output < 0:
            raise ValidationFailedError("Token counts cannot be negative", field="tokens")

        async with self.uow:
            stopped = await self.uow.sessions.complete(
                session_id,
                end_time=self.clock(),
                tokens_input=tokens_input,
                tokens_output=tokens_output,
            )
            if not stopped:
                existing = await self.uow.sessions.get(session_id)
                if existing is None:
                    raise NotFoundError("Session", session_id)
                logger.warning(
                    "Stop rejected, session not active",
                    session_id=str(session_id),
                    status=existing.status.value,
                )
                raise ConflictError(
                    f"Session {session_id} is already {existing.status.value}",
                    session_id=str(session_id),
                )
            await self.uow.commit()
            session = await self.uow.sessions.get(session_id)

        logger.info(
            "Session stopped",
            session_id=str(session_id),
            duration_seconds=session.duration_seconds,
            tokens_input=tokens_input,
            tokens_output=tokens_output,
        )
        return session

    # ======================================================================
    # Reads
    # ======================================================================

    async def get_session(self, session_id: UUID) -> WorkSession:
        session = await self.uow.sessions.get(session_id)
        if session is None:
            raise NotFoundError("Session", session_id)
        return session

    async def get_active_for_user(self, user_id: UUID) -> list[WorkSession]:
        return await self.uow.sessions.list_active([user_id])

    async def get_all_active(
        self,
        user_ids: Optional[Collection[UUID]] = None,
    ) -> list[WorkSession]:
        """Active sessions for team presence; None means everyone."""
        return await self.uow.sessions.list_active(user_ids)

    async def list_history(
        self,
        user_id: UUID,
        limit: Optional[int] = None,
        before: Optional[int] = None,
    ) -> list[WorkSession]:
        """
        A user's sessions, newest first.

        Pass the start_time of the last session received as `before` to get
        the next page.
        """
        if limit is None:
            limit = self.history_default_limit
        if limit < 1 or limit > self.history_max_limit:
            raise ValidationFailedError(
                f"limit must be between 1 and {self.history_max_limit}",
                field="limit",
            )
        return await self.uow.sessions.list_for_user(user_id, limit, before)

    async def recent_project_names(
        self,
        user_id: UUID,
        exclude_active: bool = False,
    ) -> list[str]:
        """
        Distinct project names from the user's latest sessions, most recent first.

        With exclude_active, names the user is currently tracking are left
        out (they are already running, so there is nothing to quick-start).
        """
        recent = await self.uow.sessions.list_for_user(user_id, self.recent_projects_scan)
        names = list(dict.fromkeys(s.project_name for s in recent))

        if exclude_active:
            running = {s.project_name for s in await self.get_active_for_user(user_id)}
            names = [name for name in names if name not in running]
        return names

    async def sessions_in_window(
        self,
        user_ids: Collection[UUID],
        days: int,
    ) -> list[WorkSession]:
        """Completed sessions of the given users started in the trailing window."""
        if days < 0:
            raise ValidationFailedError("days cannot be negative", field="days")
        if not user_ids:
            return []
        since = window_start_ms(days, self.clock(), self.tz)
        return await self.uow.sessions.list_since(
            user_ids, since, status=SessionStatus.COMPLETED
        )

    async def sessions_today(self, user_id: UUID) -> list[WorkSession]:
        since = window_start_ms(0, self.clock(), self.tz)
        return await self.uow.sessions.list_since([user_id], since)

    async def sessions_this_week(self, user_id: UUID) -> list[WorkSession]:
        since = window_start_ms(7, self.clock(), self.tz)
        return await self.uow.sessions.list_since([user_id], since)
