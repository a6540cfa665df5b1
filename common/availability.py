"""Slot availability checks for a venue on a given date."""
from __future__ import annotations

import logging
from datetime import date
from typing import Any, Callable, Iterable, List, Tuple, Union

from .errors import DataFetchError, MalformedScheduleError
from .models import INERT_STATUSES, BookingStatus
from .scheduling import Interval, Schedule, SessionSchedule, TimeRangeSchedule, interval_of, stored_interval

logger = logging.getLogger(__name__)

BookingLister = Callable[[], Iterable[Any]]


def _as_date(value: Union[date, str]) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(value)
    except (TypeError, ValueError) as exc:
        raise MalformedScheduleError(f"Invalid date {value!r}, expected YYYY-MM-DD") from exc


def candidate_interval(schedule: Schedule) -> Interval:
    """Interval for a requested schedule, refusing anything not admissible."""
    if not isinstance(schedule, (SessionSchedule, TimeRangeSchedule)):
        raise MalformedScheduleError()
    interval = interval_of(schedule)
    if interval.start >= interval.end:
        raise MalformedScheduleError("start_time must be before end_time")
    return interval


def _fetch(list_bookings: BookingLister) -> List[Any]:
    try:
        return list(list_bookings())
    except DataFetchError:
        raise
    except Exception as exc:
        logger.error("Booking listing failed, denying admission: %s", exc)
        raise DataFetchError() from exc


def occupied_intervals(list_bookings: BookingLister, venue_id: str, day: Union[date, str]) -> List[Tuple[Interval, Any]]:
    """Active bookings of a venue on a day paired with their intervals, by start time.

    Rows whose schedule cannot be resolved are left out and logged.
    """
    day = _as_date(day)
    occupied = []
    for booking in _fetch(list_bookings):
        if booking.venue_id != venue_id or _as_date(booking.date) != day:
            continue
        if BookingStatus(booking.status) in INERT_STATUSES:
            continue
        interval = stored_interval(booking)
        if interval is None:
            logger.warning(
                "Skipping booking %s with unresolvable schedule (session=%s, start=%s, end=%s)",
                booking.id,
                booking.session,
                booking.start_time,
                booking.end_time,
            )
            continue
        occupied.append((interval, booking))
    occupied.sort(key=lambda pair: pair[0])
    return occupied


def find_conflicts(
    list_bookings: BookingLister,
    venue_id: str,
    day: Union[date, str],
    schedule: Schedule,
) -> List[Any]:
    requested = candidate_interval(schedule)
    return [booking for interval, booking in occupied_intervals(list_bookings, venue_id, day) if requested.overlaps(interval)]


def is_available(
    list_bookings: BookingLister,
    venue_id: str,
    day: Union[date, str],
    schedule: Schedule,
) -> bool:
    """Return ``False`` when an active booking overlaps the requested schedule.

    Raises ``MalformedScheduleError`` for an unusable candidate and
    ``DataFetchError`` when existing bookings cannot be read.
    """
    conflicts = find_conflicts(list_bookings, venue_id, day, schedule)
    if conflicts:
        logger.info(
            "Slot %s on %s for venue %s conflicts with %s",
            interval_of(schedule),
            day,
            venue_id,
            ", ".join(str(booking.id) for booking in conflicts),
        )
        return False
    return True
