"""
TeamClock - Session Ledger Tests
================================

Lifecycle, stop compare-and-swap, history paging and window queries,
run against the in-memory backend.
"""

import asyncio
from uuid import uuid4

import pytest

from teamclock.core.exceptions import ConflictError, NotFoundError, ValidationFailedError
from teamclock.core.models import SessionStatus
from teamclock.core.tracking import SessionLedger
from teamclock.core.tracking.aggregation import format_duration
from tests.factories import DAY_MS, HOUR_MS, MINUTE_MS, UTC, make_session, make_user


@pytest.fixture
def ledger(uow, clock) -> SessionLedger:
    return SessionLedger(uow, clock=clock, tz=UTC)


@pytest.fixture
async def alice(uow):
    user = make_user("Alice")
    await uow.users.add(user)
    return user


# ==========================================================================
# Start / Stop
# ==========================================================================

class TestStartSession:

    async def test_start_creates_active_session(self, ledger, alice, clock):
        session = await ledger.start_session(alice.id, "Website")

        assert session.status == SessionStatus.ACTIVE
        assert session.project_name == "Website"
        assert session.start_time == clock.now
        assert session.end_time is None
        assert session.duration_seconds is None

    async def test_start_twice_yields_two_active_sessions(self, ledger, alice):
        first = await ledger.start_session(alice.id, "Website")
        second = await ledger.start_session(alice.id, "Website")

        assert first.id != second.id
        active = await ledger.get_active_for_user(alice.id)
        assert {s.id for s in active} == {first.id, second.id}
        assert all(s.project_name == "Website" for s in active)

    async def test_project_name_is_trimmed(self, ledger, alice):
        session = await ledger.start_session(alice.id, "  Website  ")
        assert session.project_name == "Website"

    @pytest.mark.parametrize("name", ["", "   ", None])
    async def test_blank_project_name_rejected(self, ledger, alice, store, name):
        with pytest.raises(ValidationFailedError) as exc_info:
            await ledger.start_session(alice.id, name)

        assert exc_info.value.field == "project_name"
        assert store.sessions == {}


class TestStopSession:

    async def test_stop_records_duration_and_tokens(self, ledger, alice, clock):
        session = await ledger.start_session(alice.id, "Website")
        clock.advance(3_661_000)

        stopped = await ledger.stop_session(session.id, tokens_input=100, tokens_output=50)

        assert stopped.status == SessionStatus.COMPLETED
        assert stopped.duration_seconds == 3661
        assert format_duration(stopped.duration_seconds) == "1h 1m"
        assert stopped.tokens_input + stopped.tokens_output == 150

    async def test_stop_round_trip(self, ledger, alice, clock):
        session = await ledger.start_session(alice.id, "Website")
        clock.advance(5 * MINUTE_MS)
        await ledger.stop_session(session.id, tokens_input=7, tokens_output=3)

        reread = await ledger.get_session(session.id)
        assert reread.tokens_input == 7
        assert reread.tokens_output == 3
        assert reread.end_time >= reread.start_time

    async def test_absent_tokens_stored_as_zero(self, ledger, alice):
        session = await ledger.start_session(alice.id, "Website")
        stopped = await ledger.stop_session(session.id)

        assert stopped.tokens_input == 0
        assert stopped.tokens_output == 0
        assert stopped.duration_seconds == 0

    async def test_stop_unknown_session_is_not_found(self, ledger, store):
        with pytest.raises(NotFoundError):
            await ledger.stop_session(uuid4(), tokens_input=1, tokens_output=1)
        assert store.sessions == {}

    async def test_second_stop_conflicts_and_keeps_first_result(self, ledger, alice, clock):
        session = await ledger.start_session(alice.id, "Website")
        clock.advance(HOUR_MS)
        await ledger.stop_session(session.id, tokens_input=10, tokens_output=20)

        clock.advance(HOUR_MS)
        with pytest.raises(ConflictError):
            await ledger.stop_session(session.id, tokens_input=99, tokens_output=99)

        reread = await ledger.get_session(session.id)
        assert reread.duration_seconds == 3600
        assert (reread.tokens_input, reread.tokens_output) == (10, 20)

    async def test_concurrent_stops_only_one_wins(self, ledger, alice):
        session = await ledger.start_session(alice.id, "Website")

        results = await asyncio.gather(
            ledger.stop_session(session.id, tokens_input=1),
            ledger.stop_session(session.id, tokens_input=2),
            return_exceptions=True,
        )

        conflicts = [r for r in results if isinstance(r, ConflictError)]
        assert len(conflicts) == 1

    async def test_negative_tokens_rejected(self, ledger, alice):
        session = await ledger.start_session(alice.id, "Website")

        with pytest.raises(ValidationFailedError):
            await ledger.stop_session(session.id, tokens_input=-1)

        assert (await ledger.get_session(session.id)).is_active

    async def test_completed_iff_end_time_set(self, ledger, alice, store):
        running = await ledger.start_session(alice.id, "A")
        done = await ledger.start_session(alice.id, "B")
        await ledger.stop_session(done.id)

        for s in store.sessions.values():
            assert (s.status == SessionStatus.COMPLETED) == (s.end_time is not None)
        assert running.id in {s.id for s in await ledger.get_all_active()}


# ==========================================================================
# Queries
# ==========================================================================

class TestHistory:

    async def test_newest_first_with_default_limit(self, ledger, alice, uow, clock):
        for i in range(12):
            await uow.sessions.add(
                make_session(alice.id, f"P{i}", clock.now - (12 - i) * HOUR_MS, MINUTE_MS)
            )

        history = await ledger.list_history(alice.id)

        assert len(history) == 10
        assert history[0].project_name == "P11"
        starts = [s.start_time for s in history]
        assert starts == sorted(starts, reverse=True)

    async def test_before_cursor_pages(self, ledger, alice, uow, clock):
        for i in range(5):
            await uow.sessions.add(make_session(alice.id, f"P{i}", clock.now - i * HOUR_MS))

        first_page = await ledger.list_history(alice.id, limit=2)
        second_page = await ledger.list_history(
            alice.id, limit=2, before=first_page[-1].start_time
        )

        assert [s.project_name for s in first_page] == ["P0", "P1"]
        assert [s.project_name for s in second_page] == ["P2", "P3"]

    @pytest.mark.parametrize("limit", [0, 501])
    async def test_limit_out_of_range(self, ledger, alice, limit):
        with pytest.raises(ValidationFailedError):
            await ledger.list_history(alice.id, limit=limit)

    async def test_only_own_sessions(self, ledger, alice, uow, clock):
        bob = make_user("Bob")
        await uow.users.add(bob)
        await uow.sessions.add(make_session(bob.id, "Other", clock.now))

        assert await ledger.list_history(alice.id) == []


class TestRecentProjectNames:

    async def test_distinct_most_recent_first(self, ledger, alice, uow, clock):
        for offset, name in enumerate(["API", "Website", "API", "Docs"]):
            await uow.sessions.add(
                make_session(alice.id, name, clock.now - offset * HOUR_MS, MINUTE_MS)
            )

        assert await ledger.recent_project_names(alice.id) == ["API", "Website", "Docs"]

    async def test_only_last_fifty_sessions_scanned(self, ledger, alice, uow, clock):
        await uow.sessions.add(make_session(alice.id, "Ancient", clock.now - 100 * DAY_MS, MINUTE_MS))
        for i in range(50):
            await uow.sessions.add(make_session(alice.id, "Recent", clock.now - i * HOUR_MS, MINUTE_MS))

        assert await ledger.recent_project_names(alice.id) == ["Recent"]

    async def test_exclude_active(self, ledger, alice, uow, clock):
        await uow.sessions.add(make_session(alice.id, "Docs", clock.now - 2 * HOUR_MS, MINUTE_MS))
        await ledger.start_session(alice.id, "Website")

        names = await ledger.recent_project_names(alice.id, exclude_active=True)
        assert names == ["Docs"]


class TestWindows:

    async def test_window_returns_completed_only(self, ledger, alice, uow, clock):
        done = make_session(alice.id, "Done", clock.now - HOUR_MS, MINUTE_MS)
        await uow.sessions.add(done)
        await ledger.start_session(alice.id, "Running")

        sessions = await ledger.sessions_in_window([alice.id], 1)
        assert [s.id for s in sessions] == [done.id]

    async def test_window_starts_at_local_midnight(self, ledger, alice, uow, clock):
        # clock is at noon; 11h ago is today, 13h ago is yesterday
        today = make_session(alice.id, "Today", clock.now - 11 * HOUR_MS, MINUTE_MS)
        yesterday = make_session(alice.id, "Yesterday", clock.now - 13 * HOUR_MS, MINUTE_MS)
        await uow.sessions.add(today)
        await uow.sessions.add(yesterday)

        assert [s.id for s in await ledger.sessions_in_window([alice.id], 0)] == [today.id]
        assert len(await ledger.sessions_in_window([alice.id], 1)) == 2

    async def test_window_respects_timezone(self, uow, clock, alice):
        from zoneinfo import ZoneInfo

        # Now is 21:00 in Tokyo. 10:00 UTC is 19:00 there (today); 14:00 UTC
        # the day before is 23:00 there (yesterday).
        tokyo = SessionLedger(uow, clock=clock, tz=ZoneInfo("Asia/Tokyo"))
        morning = make_session(alice.id, "Morning", clock.now - 2 * HOUR_MS, MINUTE_MS)
        evening = make_session(alice.id, "Evening", clock.now - 22 * HOUR_MS, MINUTE_MS)
        await uow.sessions.add(morning)
        await uow.sessions.add(evening)

        assert [s.id for s in await tokyo.sessions_in_window([alice.id], 0)] == [morning.id]

    async def test_empty_user_set(self, ledger):
        assert await ledger.sessions_in_window([], 30) == []

    async def test_negative_days_rejected(self, ledger, alice):
        with pytest.raises(ValidationFailedError):
            await ledger.sessions_in_window([alice.id], -1)

    async def test_today_and_week_include_running(self, ledger, alice, uow, clock):
        await uow.sessions.add(make_session(alice.id, "Old", clock.now - 3 * DAY_MS, MINUTE_MS))
        running = await ledger.start_session(alice.id, "Now")

        today = await ledger.sessions_today(alice.id)
        week = await ledger.sessions_this_week(alice.id)

        assert [s.id for s in today] == [running.id]
        assert {s.project_name for s in week} == {"Old", "Now"}
