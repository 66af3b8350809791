"""
Clock and calendar helpers.

Session times are epoch milliseconds; day boundaries are local midnights in
the configured timezone.
"""

import time
from collections.abc import Callable
from datetime import date, datetime, timedelta, tzinfo
from datetime import time as dt_time

Clock = Callable[[], int]


def epoch_ms() -> int:
    """Current wall-clock time in epoch milliseconds."""
    return time.time_ns() // 1_000_000


def local_date(ms: int, tz: tzinfo) -> date:
    """Calendar date of an epoch-ms instant in the given timezone."""
    return datetime.fromtimestamp(ms / 1000, tz=tz).date()


def start_of_day_ms(day: date, tz: tzinfo) -> int:
    """Epoch ms of local midnight at the start of `day`."""
    midnight = datetime.combine(day, dt_time.min, tzinfo=tz)
    return int(midnight.timestamp() * 1000)


def window_start_ms(days: int, now_ms: int, tz: tzinfo) -> int:
    """
    Start of a trailing window of `days` days.

    The window opens at local midnight `days` days before today, so
    days=0 means "since midnight today" and days=7 covers today plus the
    seven previous calendar days.
    """
    today = local_date(now_ms, tz)
    return start_of_day_ms(today - timedelta(days=days), tz)
