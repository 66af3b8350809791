"""
Stats Service
=============

Read-only views composed from ledger queries and the aggregation engine:

- history: one user's recent completed sessions grouped by day
- team summary: windowed totals per member and per project
- presence: who in the team is working right now
- project stats: all team time logged under one project's name
"""

from dataclasses import dataclass
from datetime import date, tzinfo
from typing import Optional
from uuid import UUID

from teamclock.core.config import settings
from teamclock.core.models import Project, User, WorkSession
from teamclock.core.repositories.base import UnitOfWork
from teamclock.core.tracking.aggregation import (
    MemberPresence,
    MemberTotals,
    Partition,
    SessionTotals,
    day_label,
    group_by_day,
    group_by_project,
    group_by_user,
    per_user_totals,
    presence_order,
    team_ranking,
)
from teamclock.core.tracking.ledger import SessionLedger
from teamclock.core.tracking.membership import MembershipService
from teamclock.core.tracking.projects import ProjectRegistry
from teamclock.core.tracking.timeutils import Clock, epoch_ms, local_date


@dataclass
class DayGroup:
    day: date
    label: str
    totals: SessionTotals
    sessions: list[WorkSession]


@dataclass
class HistoryReport:
    totals: SessionTotals
    days: list[DayGroup]


@dataclass
class MemberSummary:
    member: User
    totals: SessionTotals
    projects: list[Partition[str]]


@dataclass
class ProjectSummary:
    project: Project
    totals: SessionTotals
    members: list[MemberTotals]


@dataclass
class TeamSummary:
    days: int
    totals: SessionTotals
    members: list[MemberSummary]
    projects: list[ProjectSummary]


@dataclass
class ProjectStats:
    project: Project
    days: int
    totals: SessionTotals
    sessions: list[WorkSession]


class StatsService:
    """Builds the statistics views; every call recomputes from raw sessions."""

    def __init__(
        self,
        uow: UnitOfWork,
        clock: Clock = epoch_ms,
        tz: Optional[tzinfo] = None,
    ):
        self.uow = uow
        self.clock = clock
        self.tz = tz or settings.tz
        self.ledger = SessionLedger(uow, clock=clock, tz=self.tz)
        self.membership = MembershipService(uow)
        self.projects = ProjectRegistry(uow)

    async def history(self, user_id: UUID, limit: Optional[int] = None) -> HistoryReport:
        sessions = await self.ledger.list_history(
            user_id, limit or settings.HISTORY_REPORT_LIMIT
        )
        completed = [s for s in sessions if not s.is_active]
        today = local_date(self.clock(), self.tz)

        days = [
            DayGroup(
                day=day,
                label=day_label(day, today),
                totals=per_user_totals(day_sessions),
                sessions=day_sessions,
            )
            for day, day_sessions in group_by_day(completed, self.tz).items()
        ]
        return HistoryReport(totals=per_user_totals(completed), days=days)

    async def team_summary(self, company_id: UUID, days: Optional[int] = None) -> TeamSummary:
        days = settings.SUMMARY_WINDOW_DAYS if days is None else days
        members = await self.membership.team_members(company_id)
        projects = await self.projects.list_projects(company_id)
        sessions = await self.ledger.sessions_in_window([m.id for m in members], days)

        member_summaries = [
            MemberSummary(
                member=entry.member,
                totals=entry.totals,
                projects=group_by_project(entry.sessions),
            )
            for entry in team_ranking(members, sessions)
        ]

        members_by_id = {m.id: m for m in members}
        by_project = {p.key: p for p in group_by_project(sessions)}
        project_summaries = []
        for project in projects:
            partition = by_project.get(project.name)
            if partition is None:
                continue
            breakdown = [
                MemberTotals(member=members_by_id[p.key], totals=p.totals, sessions=p.sessions)
                for p in group_by_user(partition.sessions)
                if p.key in members_by_id
            ]
            project_summaries.append(
                ProjectSummary(project=project, totals=partition.totals, members=breakdown)
            )
        project_summaries.sort(key=lambda p: p.totals.total_seconds, reverse=True)

        return TeamSummary(
            days=days,
            totals=per_user_totals(sessions),
            members=member_summaries,
            projects=project_summaries,
        )

    async def presence(self, company_id: UUID) -> list[MemberPresence]:
        members = await self.membership.team_members(company_id)
        active = await self.ledger.get_all_active([m.id for m in members])
        return presence_order(members, active)

    async def project_stats(self, project_id: UUID, days: Optional[int] = None) -> ProjectStats:
        days = settings.PROJECT_STATS_WINDOW_DAYS if days is None else days
        project = await self.projects.get_project(project_id)
        members = await self.membership.team_members(project.company_id)
        sessions = await self.ledger.sessions_in_window([m.id for m in members], days)

        matching = [s for s in sessions if s.project_name == project.name]
        matching.sort(key=lambda s: s.start_time, reverse=True)
        return ProjectStats(
            project=project,
            days=days,
            totals=per_user_totals(matching),
            sessions=matching,
        )
