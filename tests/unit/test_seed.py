"""Unit tests for the demo data seed script."""
from datetime import date

from common.availability import is_available
from common.models import Booking, SessionSlot, User, Venue
from common.scheduling import SessionSchedule, TimeRangeSchedule
from common.store import BookingStore
from scripts.seed_demo_data import seed


def test_seed_is_idempotent(db_session):
    seed(db_session)
    seed(db_session)

    assert db_session.query(User).count() == 2
    assert db_session.query(Venue).count() == 3
    assert db_session.query(Booking).count() == 2


def test_seeded_bookings_block_their_slots(db_session):
    seed(db_session)
    store = BookingStore(db_session)

    assert is_available(store.list_bookings, "v1", date(2024, 5, 20), TimeRangeSchedule(600, 660)) is False
    assert is_available(store.list_bookings, "v1", date(2024, 5, 20), SessionSchedule(SessionSlot.AFTERNOON)) is True
    assert is_available(store.list_bookings, "v2", date(2024, 5, 22), SessionSchedule(SessionSlot.FULL_DAY)) is False
