"""Business-time arithmetic over a BusinessCalendar.

Durations up to EXACT_MODE_MAX_MINUTES are walked day by day through the
calendar's working windows. Longer durations use a fast approximation:
FAST_PATH_MINUTES_PER_DAY business minutes per Monday-Friday day, with no
holiday awareness and the remainder counted from FAST_PATH_DAY_START. The
approximation can be off by about one business day against the exact walk,
so callers needing exact deadlines for long windows must raise the threshold.

The result is monotonic in ``minutes`` only within each mode. Crossing the
threshold can move the deadline backwards: from Monday 17:00 on a
Mon-Fri 08:00-18:00 calendar, 2880 minutes lands on the next Monday at 15:00
and 2881 minutes on the same Monday at 12:01. Inside the fast path an exact
multiple of FAST_PATH_MINUTES_PER_DAY keeps the start's time of day, which
can also land later than one minute more.
"""
import logging
from datetime import date, datetime, time, timedelta, timezone
from typing import Protocol
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

# Two business days at the 24h/day upper bound
EXACT_MODE_MAX_MINUTES = 2880
FAST_PATH_MINUTES_PER_DAY = 540
FAST_PATH_DAY_START = time(9, 0)
MAX_DAYS_CHECKED = 30


class CalendarLike(Protocol):
    @property
    def tzinfo(self) -> ZoneInfo: ...

    def working_window(self, day: date) -> tuple[time, time] | None: ...


def _next_midnight(current: datetime) -> datetime:
    return datetime.combine(current.date() + timedelta(days=1), time.min, tzinfo=current.tzinfo)


def _to_calendar_zone(start: datetime, tz: ZoneInfo) -> datetime:
    # Naive datetimes come from storage, which keeps UTC
    if start.tzinfo is None:
        start = start.replace(tzinfo=timezone.utc)
    return start.astimezone(tz)


def add_business_minutes(
    start: datetime,
    minutes: int,
    calendar: CalendarLike,
    *,
    exact_mode_max_minutes: int = EXACT_MODE_MAX_MINUTES,
) -> datetime:
    """Advance ``start`` by ``minutes`` of working time on ``calendar``.

    Returns an aware datetime in the calendar's timezone. Never raises on a
    calendar with no working time: after MAX_DAYS_CHECKED days the remaining
    balance is added as wall-clock minutes and a warning is logged.
    """
    current = _to_calendar_zone(start, calendar.tzinfo)
    if minutes > exact_mode_max_minutes:
        return _fast_path(current, minutes)

    remaining = minutes
    days_checked = 0
    while remaining > 0 and days_checked < MAX_DAYS_CHECKED:
        window = calendar.working_window(current.date())
        if window is None:
            current = _next_midnight(current)
            days_checked += 1
            continue

        day_start = datetime.combine(current.date(), window[0], tzinfo=current.tzinfo)
        day_end = datetime.combine(current.date(), window[1], tzinfo=current.tzinfo)

        if current < day_start:
            current = day_start
        if current >= day_end:
            current = _next_midnight(current)
            days_checked += 1
            continue

        available = int((day_end - current).total_seconds() // 60)
        used = min(remaining, available)
        current += timedelta(minutes=used)
        remaining -= used

        if remaining > 0 and used == available:
            current = _next_midnight(current)
            days_checked += 1

    if remaining > 0:
        logger.warning(
            "Business day limit of %d days reached, adding %d remaining minutes as wall-clock time",
            MAX_DAYS_CHECKED,
            remaining,
        )
        current += timedelta(minutes=remaining)

    return current


def _fast_path(current: datetime, minutes: int) -> datetime:
    business_days, remainder = divmod(minutes, FAST_PATH_MINUTES_PER_DAY)

    days_added = 0
    while days_added < business_days:
        current += timedelta(days=1)
        if current.weekday() < 5:
            days_added += 1

    if remainder > 0:
        current = datetime.combine(current.date(), FAST_PATH_DAY_START, tzinfo=current.tzinfo)
        current += timedelta(minutes=remainder)

    logger.debug("Fast-path business time: %d days + %d min", business_days, remainder)
    return current
