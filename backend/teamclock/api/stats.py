"""
TeamClock - Stats API
=====================

Aggregated views, recomputed from raw sessions on every request.
"""

from fastapi import APIRouter, Query

from teamclock.api.deps import CurrentMember, CurrentUser, Stats
from teamclock.core.config import settings
from teamclock.core.schemas import (
    HistoryReportResponse,
    MemberBreakdownResponse,
    MemberSummaryResponse,
    PresenceResponse,
    ProjectBreakdownResponse,
    ProjectResponse,
    ProjectSummaryResponse,
    TeamSummaryResponse,
    TotalsResponse,
    UserResponse,
)
from teamclock.core.tracking.stats import TeamSummary

router = APIRouter(prefix="/stats", tags=["Stats"])


def _summary_response(summary: TeamSummary) -> TeamSummaryResponse:
    return TeamSummaryResponse(
        days=summary.days,
        totals=TotalsResponse.model_validate(summary.totals),
        members=[
            MemberSummaryResponse(
                member=UserResponse.model_validate(entry.member),
                totals=TotalsResponse.model_validate(entry.totals),
                projects=[
                    ProjectBreakdownResponse(
                        project_name=p.key,
                        totals=TotalsResponse.model_validate(p.totals),
                    )
                    for p in entry.projects
                ],
            )
            for entry in summary.members
        ],
        projects=[
            ProjectSummaryResponse(
                project=ProjectResponse.model_validate(entry.project),
                totals=TotalsResponse.model_validate(entry.totals),
                members=[MemberBreakdownResponse.model_validate(m) for m in entry.members],
            )
            for entry in summary.projects
        ],
    )


@router.get(
    "/history",
    response_model=HistoryReportResponse,
    summary="Caller's history grouped by day",
)
async def get_history(
    current_user: CurrentUser,
    stats: Stats,
    limit: int = Query(settings.HISTORY_REPORT_LIMIT, ge=1, le=settings.HISTORY_MAX_LIMIT),
) -> HistoryReportResponse:
    """Totals and per-day groups over the caller's latest completed sessions."""
    report = await stats.history(current_user.id, limit=limit)
    return HistoryReportResponse.model_validate(report)


@router.get(
    "/summary",
    response_model=TeamSummaryResponse,
    summary="Team summary over a trailing window",
)
async def get_team_summary(
    current_member: CurrentMember,
    stats: Stats,
    days: int = Query(settings.SUMMARY_WINDOW_DAYS, ge=0, le=3660),
) -> TeamSummaryResponse:
    """
    Team totals, members ranked by tracked time with their per-project split,
    and projects ranked by tracked time with their per-member split.
    """
    summary = await stats.team_summary(current_member.company_id, days)
    return _summary_response(summary)


@router.get(
    "/presence",
    response_model=list[PresenceResponse],
    summary="Who is working right now",
)
async def get_presence(current_member: CurrentMember, stats: Stats) -> list[PresenceResponse]:
    """Teammates with a running session first, then everyone by name."""
    entries = await stats.presence(current_member.company_id)
    return [PresenceResponse.model_validate(e) for e in entries]
