"""
TeamClock Tracking Core
=======================

Components (leaves first):
- IdentityResolver: external identity -> user record
- MembershipService: companies, invite codes, membership
- ProjectRegistry: company projects
- SessionLedger: session lifecycle and queries
- aggregation: pure rollups (totals, by day, by project, by user, rankings)
- StatsService: history, team summary, presence and project views
"""

from teamclock.core.tracking.identity import IdentityResolver
from teamclock.core.tracking.ledger import SessionLedger
from teamclock.core.tracking.membership import MembershipService
from teamclock.core.tracking.projects import ProjectRegistry
from teamclock.core.tracking.stats import StatsService

__all__ = [
    "IdentityResolver",
    "MembershipService",
    "ProjectRegistry",
    "SessionLedger",
    "StatsService",
]
