"""Canonical time intervals for booking schedules.

A booking occupies its date either through a legacy coarse ``session`` or
through a precise ``start_time``/``end_time`` pair. Both are reduced here to a
half-open ``[start, end)`` interval in minutes since local midnight so the two
representations can be compared against each other.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, NamedTuple, Optional, Union

from .errors import MalformedScheduleError
from .models import SessionSlot

MINUTES_PER_DAY = 24 * 60

_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$", re.ASCII)


class Interval(NamedTuple):
    start: int
    end: int

    def overlaps(self, other: "Interval") -> bool:
        # Half-open: a 12:00 end and a 12:00 start may coexist.
        return self.start < other.end and self.end > other.start


SESSION_INTERVALS: dict[SessionSlot, Interval] = {
    SessionSlot.MORNING: Interval(8 * 60, 12 * 60),
    SessionSlot.AFTERNOON: Interval(13 * 60, 17 * 60),
    SessionSlot.EVENING: Interval(18 * 60, 22 * 60),
    SessionSlot.FULL_DAY: Interval(8 * 60, 22 * 60),
}


@dataclass(frozen=True)
class SessionSchedule:
    session: SessionSlot


@dataclass(frozen=True)
class TimeRangeSchedule:
    start_minutes: int
    end_minutes: int


Schedule = Union[SessionSchedule, TimeRangeSchedule]


def parse_clock(value: str) -> int:
    """Convert an ``HH:MM`` 24-hour clock string to minutes since midnight.

    ``24:00`` is accepted as the end-of-day boundary. Raises ``ValueError``
    for anything else that is not a valid clock time.
    """
    match = _CLOCK_RE.match(value.strip()) if isinstance(value, str) else None
    if not match:
        raise ValueError(f"Invalid clock time {value!r}, expected HH:MM")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours == 24 and minutes == 0:
        return MINUTES_PER_DAY
    if hours > 23 or minutes > 59:
        raise ValueError(f"Invalid clock time {value!r}, expected HH:MM")
    return hours * 60 + minutes


def format_clock(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def interval_of(schedule: Schedule) -> Interval:
    if isinstance(schedule, TimeRangeSchedule):
        return Interval(schedule.start_minutes, schedule.end_minutes)
    if isinstance(schedule, SessionSchedule):
        return SESSION_INTERVALS[schedule.session]
    raise MalformedScheduleError(f"Unsupported schedule type {type(schedule).__name__}")


def schedule_from_fields(
    session: Optional[Union[SessionSlot, str]] = None,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
) -> Schedule:
    """Build a validated schedule from raw request fields.

    A complete ``start_time``/``end_time`` pair wins over ``session``. Raises
    ``MalformedScheduleError`` when neither representation is usable or when
    the precise range is empty or reversed.
    """
    if start_time and end_time:
        try:
            start, end = parse_clock(start_time), parse_clock(end_time)
        except ValueError as exc:
            raise MalformedScheduleError(str(exc)) from exc
        if start >= end:
            raise MalformedScheduleError("start_time must be before end_time")
        return TimeRangeSchedule(start, end)

    if session:
        try:
            return SessionSchedule(SessionSlot(session))
        except ValueError as exc:
            raise MalformedScheduleError(f"Unknown session {session!r}") from exc

    if start_time or end_time:
        raise MalformedScheduleError("start_time and end_time must be provided together")
    raise MalformedScheduleError()


def stored_interval(booking: Any) -> Optional[Interval]:
    """Interval of a persisted booking, or ``None`` when it cannot be resolved.

    Stored rows are not validated the way new requests are, so only the
    conversion rules are applied here: precise times first, then the session
    table. A reversed stored range is returned as is.
    """
    start_time = getattr(booking, "start_time", None)
    end_time = getattr(booking, "end_time", None)
    if start_time and end_time:
        try:
            return Interval(parse_clock(start_time), parse_clock(end_time))
        except ValueError:
            return None

    session = getattr(booking, "session", None)
    if session:
        try:
            return SESSION_INTERVALS[SessionSlot(session)]
        except ValueError:
            return None
    return None
