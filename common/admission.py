"""Reservation admission and booking status lifecycle."""
from __future__ import annotations

import logging
import threading
import weakref
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterator, Optional, Tuple

from .availability import is_available
from .cache import invalidate_schedule
from .errors import BookingNotFound, BookingPermissionError, InvalidStatusTransition, SlotConflictError
from .models import Booking, BookingStatus, RoleEnum, User, new_id
from .scheduling import TimeRangeSchedule, format_clock, schedule_from_fields
from .schemas import BookingCreate
from .store import BookingStore

logger = logging.getLogger(__name__)

# PENDING is the only non-terminal state.
ALLOWED_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING: frozenset({BookingStatus.APPROVED, BookingStatus.REJECTED, BookingStatus.CANCELLED}),
    BookingStatus.APPROVED: frozenset(),
    BookingStatus.REJECTED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

REVIEW_OUTCOMES = frozenset({BookingStatus.APPROVED, BookingStatus.REJECTED})


class _KeyLock:
    __slots__ = ("lock", "__weakref__")

    def __init__(self) -> None:
        self.lock = threading.Lock()


class AdmissionLocks:
    """One lock per ``(venue_id, date)`` so check-and-create runs atomically per slot key.

    Entries are weakly held and vanish once no request is using them.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: "weakref.WeakValueDictionary[Tuple[str, date], _KeyLock]" = weakref.WeakValueDictionary()

    def _lock_for(self, key: Tuple[str, date]) -> _KeyLock:
        with self._guard:
            entry = self._locks.get(key)
            if entry is None:
                entry = _KeyLock()
                self._locks[key] = entry
            return entry

    @contextmanager
    def hold(self, venue_id: str, day: date) -> Iterator[None]:
        entry = self._lock_for((venue_id, day))
        with entry.lock:
            yield

    def __len__(self) -> int:
        with self._guard:
            return len(self._locks)


admission_locks = AdmissionLocks()


def admit_booking(
    store: BookingStore,
    request: BookingCreate,
    user: User,
    locks: Optional[AdmissionLocks] = None,
) -> Booking:
    """Create a PENDING booking if the requested slot is free.

    Raises ``MalformedScheduleError`` for an unusable schedule,
    ``SlotConflictError`` when an active booking overlaps and
    ``DataFetchError`` when existing bookings cannot be read.
    """
    schedule = schedule_from_fields(request.session, request.start_time, request.end_time)
    locks = locks or admission_locks

    with locks.hold(request.venue_id, request.date):
        if not is_available(store.list_bookings, request.venue_id, request.date, schedule):
            logger.info("Rejected booking for venue %s on %s: slot taken", request.venue_id, request.date)
            raise SlotConflictError()

        booking = Booking(
            id=new_id(),
            venue_id=request.venue_id,
            user_id=user.id,
            user_name=user.name,
            date=request.date,
            session=request.session,
            purpose=request.purpose,
            program_type=request.program_type,
            status=BookingStatus.PENDING,
            created_at=datetime.utcnow(),
        )
        if isinstance(schedule, TimeRangeSchedule):
            booking.start_time = format_clock(schedule.start_minutes)
            booking.end_time = format_clock(schedule.end_minutes)
        booking = store.add_booking(booking)
    invalidate_schedule(booking.venue_id, booking.date)

    logger.info("Admitted booking %s for venue %s on %s", booking.id, booking.venue_id, booking.date)
    return booking


def _load(store: BookingStore, booking_id: str) -> Booking:
    booking = store.get_booking(booking_id)
    if booking is None:
        raise BookingNotFound()
    return booking


def _check_transition(booking: Booking, new_status: BookingStatus) -> None:
    current = BookingStatus(booking.status)
    if new_status not in ALLOWED_TRANSITIONS[current]:
        raise InvalidStatusTransition(f"Cannot move booking from {current.value} to {new_status.value}")


def transition_status(store: BookingStore, booking_id: str, new_status: BookingStatus, actor: User) -> Booking:
    """Admin review: move a PENDING booking to APPROVED or REJECTED."""
    if actor.role != RoleEnum.ADMIN:
        raise BookingPermissionError("Only admins can review bookings")
    if new_status not in REVIEW_OUTCOMES:
        raise InvalidStatusTransition("Status must be APPROVED or REJECTED")

    booking = _load(store, booking_id)
    _check_transition(booking, new_status)
    booking = store.patch_booking_status(booking_id, new_status, expected=BookingStatus.PENDING)
    invalidate_schedule(booking.venue_id, booking.date)
    logger.info("Booking %s set to %s by %s", booking_id, new_status.value, actor.username)
    return booking


def cancel_booking(store: BookingStore, booking_id: str, actor: User) -> Booking:
    """Withdraw a PENDING booking; the row is kept with status CANCELLED."""
    booking = _load(store, booking_id)
    if actor.role != RoleEnum.ADMIN and booking.user_id != actor.id:
        raise BookingPermissionError("You can only cancel your own bookings")
    if BookingStatus(booking.status) != BookingStatus.PENDING:
        raise InvalidStatusTransition("Only pending bookings can be cancelled")

    booking = store.patch_booking_status(booking_id, BookingStatus.CANCELLED, expected=BookingStatus.PENDING)
    invalidate_schedule(booking.venue_id, booking.date)
    logger.info("Booking %s cancelled by %s", booking_id, actor.username)
    return booking
