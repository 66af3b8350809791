"""
TeamClock - Sessions API
========================

Start/stop tracked work and read the ledger.

- POST /sessions                   - Start a session
- POST /sessions/{id}/stop         - Stop a session
- GET  /sessions/active            - Caller's running sessions
- GET  /sessions/active/team       - Running sessions of the caller's team
- GET  /sessions/history           - A user's sessions, newest first
- GET  /sessions/recent-projects   - Quick-start project names
- GET  /sessions/today | /week     - Caller's sessions since midnight / 7 days
- GET  /sessions/window            - Team's completed sessions in a window
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, HTTPException, Query, status

from teamclock.api.deps import CurrentMember, CurrentUser, Ledger, Membership
from teamclock.core.config import settings
from teamclock.core.models import User
from teamclock.core.schemas import SessionResponse, SessionStart, SessionStop

router = APIRouter(prefix="/sessions", tags=["Sessions"])


def _to_response(sessions) -> list[SessionResponse]:
    return [SessionResponse.model_validate(s) for s in sessions]


async def _team_ids(membership, member: User) -> list[UUID]:
    return [m.id for m in await membership.team_members(member.company_id)]


# ==========================================================================
# Lifecycle
# ==========================================================================

@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a session",
)
async def start_session(
    data: SessionStart,
    current_user: CurrentUser,
    ledger: Ledger,
) -> SessionResponse:
    """Start tracking work on a project. Several sessions may run at once."""
    session = await ledger.start_session(current_user.id, data.project_name)
    return SessionResponse.model_validate(session)


@router.post(
    "/{session_id}/stop",
    response_model=SessionResponse,
    summary="Stop a session",
    responses={
        403: {"description": "Session belongs to another user"},
        404: {"description": "Session not found"},
        409: {"description": "Session already stopped"},
    },
)
async def stop_session(
    session_id: UUID,
    current_user: CurrentUser,
    ledger: Ledger,
    data: Optional[SessionStop] = None,
) -> SessionResponse:
    """Stop one of the caller's running sessions and record token usage."""
    session = await ledger.get_session(session_id)
    if session.user_id != current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Cannot stop another user's session",
        )

    data = data or SessionStop()
    session = await ledger.stop_session(
        session_id,
        tokens_input=data.tokens_input,
        tokens_output=data.tokens_output,
    )
    return SessionResponse.model_validate(session)


# ==========================================================================
# Queries
# ==========================================================================

@router.get(
    "/active",
    response_model=list[SessionResponse],
    summary="List caller's active sessions",
)
async def get_active_sessions(current_user: CurrentUser, ledger: Ledger) -> list[SessionResponse]:
    return _to_response(await ledger.get_active_for_user(current_user.id))


@router.get(
    "/active/team",
    response_model=list[SessionResponse],
    summary="List active sessions of the caller's team",
)
async def get_team_active_sessions(
    current_member: CurrentMember,
    ledger: Ledger,
    membership: Membership,
) -> list[SessionResponse]:
    team_ids = await _team_ids(membership, current_member)
    return _to_response(await ledger.get_all_active(team_ids))


@router.get(
    "/history",
    response_model=list[SessionResponse],
    summary="List session history",
    responses={404: {"description": "User is not a teammate"}},
)
async def list_session_history(
    current_user: CurrentUser,
    ledger: Ledger,
    membership: Membership,
    user_id: Optional[UUID] = None,
    limit: int = Query(settings.HISTORY_DEFAULT_LIMIT, ge=1, le=settings.HISTORY_MAX_LIMIT),
    before: Optional[int] = Query(None, description="start_time cursor (exclusive)"),
) -> list[SessionResponse]:
    """
    Sessions newest first, for the caller or one of their teammates.

    Page with `before` set to the start_time of the last session returned.
    """
    target = user_id or current_user.id
    if target != current_user.id:
        teammates = (
            await _team_ids(membership, current_user)
            if current_user.company_id is not None
            else []
        )
        if target not in teammates:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
    return _to_response(await ledger.list_history(target, limit=limit, before=before))


@router.get(
    "/recent-projects",
    response_model=list[str],
    summary="Recently used project names",
)
async def get_recent_project_names(
    current_user: CurrentUser,
    ledger: Ledger,
    exclude_active: bool = False,
) -> list[str]:
    return await ledger.recent_project_names(current_user.id, exclude_active=exclude_active)


@router.get(
    "/today",
    response_model=list[SessionResponse],
    summary="Caller's sessions since midnight",
)
async def get_today_sessions(current_user: CurrentUser, ledger: Ledger) -> list[SessionResponse]:
    return _to_response(await ledger.sessions_today(current_user.id))


@router.get(
    "/week",
    response_model=list[SessionResponse],
    summary="Caller's sessions over the last 7 days",
)
async def get_week_sessions(current_user: CurrentUser, ledger: Ledger) -> list[SessionResponse]:
    return _to_response(await ledger.sessions_this_week(current_user.id))


@router.get(
    "/window",
    response_model=list[SessionResponse],
    summary="Team's completed sessions in a trailing window",
)
async def get_sessions_in_window(
    current_member: CurrentMember,
    ledger: Ledger,
    membership: Membership,
    days: int = Query(settings.SUMMARY_WINDOW_DAYS, ge=0, le=3660),
) -> list[SessionResponse]:
    team_ids = await _team_ids(membership, current_member)
    return _to_response(await ledger.sessions_in_window(team_ids, days))
