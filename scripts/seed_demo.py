#!/usr/bin/env python3
"""
Seed demo data - a company, a user and two completed sessions.

Writes through the tracking services into the configured SQL database and
prints a bearer token for the demo user.
"""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

from teamclock.api.deps import create_identity_token
from teamclock.core.database import close_db, get_db_session, init_db
from teamclock.core.repositories import SqlUnitOfWork
from teamclock.core.tracking import IdentityResolver, MembershipService, SessionLedger
from teamclock.core.tracking.timeutils import epoch_ms

DEMO_IDENTITY = "demo|user-1"

DEMO_SESSIONS = [
    # (project, minutes ago started, minutes worked, tokens in, tokens out)
    ("Website Redesign", 3 * 60, 90, 12_000, 4_500),
    ("Mobile App", 26 * 60, 45, 3_200, 1_100),
]


async def seed_demo(identity: str = DEMO_IDENTITY) -> bool:
    """Create the demo records; returns False if the user already has a company."""
    await init_db()
    try:
        async with get_db_session() as db:
            uow = SqlUnitOfWork(db)

            user = await IdentityResolver(uow).upsert_profile(
                identity, name="Demo User", role="Developer"
            )
            if user.company_id is not None:
                print(f"Warning: {identity} already belongs to a company, nothing seeded")
                return False

            company = await MembershipService(uow).create_company("MIGHTY", user.id)
            print(f"  Company: {company.name} (invite code {company.invite_code})")

            now = epoch_ms()
            for project, started_ago, worked, tokens_in, tokens_out in DEMO_SESSIONS:
                clock_at = now - started_ago * 60_000
                ledger = SessionLedger(uow, clock=lambda: clock_at)
                session = await ledger.start_session(user.id, project)

                clock_at += worked * 60_000
                await ledger.stop_session(session.id, tokens_input=tokens_in, tokens_output=tokens_out)
                print(f"  Session: {project} ({worked}m)")
    finally:
        await close_db()

    print(f"\nDemo data seeded for {identity}")
    print(f"  Token: {create_identity_token(identity)}")
    return True


if __name__ == "__main__":
    identity = sys.argv[1] if len(sys.argv) > 1 else DEMO_IDENTITY

    success = asyncio.run(seed_demo(identity))
    sys.exit(0 if success else 1)
