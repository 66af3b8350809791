"""
Aggregation Engine
==================

Pure rollups over session rows. Nothing here touches storage or caches a
result: every view is recomputed from the raw sessions it is given, which
keeps the numbers consistent with the ledger at the cost of re-scanning a
bounded window on each query.
"""

from collections import defaultdict
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, timedelta, tzinfo
from typing import Generic, TypeVar
from uuid import UUID

from teamclock.core.models import User, WorkSession
from teamclock.core.tracking.timeutils import local_date

K = TypeVar("K")


@dataclass(frozen=True)
class SessionTotals:
    """Summed time and tokens over a set of sessions."""

    total_seconds: int = 0
    total_input_tokens: int = 0
    total_output_tokens: int = 0
    session_count: int = 0

    @property
    def total_tokens(self) -> int:
        return self.total_input_tokens + self.total_output_tokens


@dataclass
class Partition(Generic[K]):
    """Sessions sharing one key (project name or user id) and their totals."""

    key: K
    sessions: list[WorkSession]
    totals: SessionTotals


@dataclass
class MemberTotals:
    member: User
    totals: SessionTotals
    sessions: list[WorkSession] = field(default_factory=list)


@dataclass
class MemberPresence:
    member: User
    active_sessions: list[WorkSession]

    @property
    def is_active(self) -> bool:
        return bool(self.active_sessions)

    @property
    def current_projects(self) -> list[str]:
        return [s.project_name for s in self.active_sessions]


# ==========================================================================
# Totals
# ==========================================================================

def per_user_totals(sessions: Iterable[WorkSession]) -> SessionTotals:
    """
    Sum durations and token counts.

    Only sessions with an end time contribute seconds; absent token counts
    count as 0; every session counts toward session_count.
    """
    total_seconds = 0
    total_input = 0
    total_output = 0
    count = 0

    for s in sessions:
        count += 1
        if s.end_time is not None:
            total_seconds += s.duration_seconds
        total_input += s.tokens_input or 0
        total_output += s.tokens_output or 0

    return SessionTotals(
        total_seconds=total_seconds,
        total_input_tokens=total_input,
        total_output_tokens=total_output,
        session_count=count,
    )


# ==========================================================================
# Grouping
# ==========================================================================

def group_by_day(
    sessions: Iterable[WorkSession],
    tz: tzinfo,
) -> dict[date, list[WorkSession]]:
    """Sessions keyed by the local date they started on, most recent day first."""
    groups: dict[date, list[WorkSession]] = defaultdict(list)
    for s in sessions:
        groups[local_date(s.start_time, tz)].append(s)
    return {day: groups[day] for day in sorted(groups, reverse=True)}


def _partition(sessions: Iterable[WorkSession], key) -> list[Partition]:
    groups: dict = defaultdict(list)
    for s in sessions:
        groups[key(s)].append(s)

    partitions = [
        Partition(key=k, sessions=group, totals=per_user_totals(group))
        for k, group in groups.items()
    ]
    partitions.sort(key=lambda p: p.totals.total_seconds, reverse=True)
    return partitions


def group_by_project(sessions: Iterable[WorkSession]) -> list[Partition[str]]:
    """Per project-name rollups, largest total time first."""
    return _partition(sessions, lambda s: s.project_name)


def group_by_user(sessions: Iterable[WorkSession]) -> list[Partition[UUID]]:
    """Per user rollups, largest total time first."""
    return _partition(sessions, lambda s: s.user_id)


# ==========================================================================
# Team views
# ==========================================================================

def team_ranking(
    members: Sequence[User],
    sessions: Iterable[WorkSession],
) -> list[MemberTotals]:
    """
    One entry per member, most tracked time first.

    Members without sessions are included with zero totals. Equal totals
    fall back to name order.
    """
    by_user: dict[UUID, list[WorkSession]] = defaultdict(list)
    for s in sessions:
        by_user[s.user_id].append(s)

    ranking = [
        MemberTotals(
            member=m,
            totals=per_user_totals(by_user.get(m.id, [])),
            sessions=by_user.get(m.id, []),
        )
        for m in members
    ]
    ranking.sort(key=lambda e: (-e.totals.total_seconds, e.member.name.casefold()))
    return ranking


def presence_order(
    members: Sequence[User],
    active_sessions: Iterable[WorkSession],
) -> list[MemberPresence]:
    """Members currently working first, then everyone alphabetically."""
    by_user: dict[UUID, list[WorkSession]] = defaultdict(list)
    for s in active_sessions:
        by_user[s.user_id].append(s)

    entries = [MemberPresence(member=m, active_sessions=by_user.get(m.id, [])) for m in members]
    entries.sort(key=lambda e: (not e.is_active, e.member.name.casefold()))
    return entries


# ==========================================================================
# Display helpers
# ==========================================================================

def format_duration(seconds: int) -> str:
    """'1h 1m', '5m' or '42s'."""
    hours, remainder = divmod(seconds, 3600)
    minutes = remainder // 60
    if hours > 0:
        return f"{hours}h {minutes}m"
    if minutes > 0:
        return f"{minutes}m"
    return f"{seconds}s"


def day_label(day: date, today: date) -> str:
    if day == today:
        return "today"
    if day == today - timedelta(days=1):
        return "yesterday"
    return day.strftime("%b %d (%a)")
