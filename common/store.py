"""Booking persistence collaborator backed by a SQLAlchemy session."""
from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from .errors import BookingNotFound, DataFetchError, InvalidStatusTransition
from .models import Booking, BookingStatus

logger = logging.getLogger(__name__)


class BookingStore:
    """Thin read/write facade over the bookings table.

    ``list_bookings`` returns every booking with no filtering; callers do
    their own venue/date/status selection.
    """

    def __init__(self, db: Session) -> None:
        self.db = db

    def list_bookings(self) -> List[Booking]:
        try:
            return self.db.query(Booking).all()
        except SQLAlchemyError as exc:
            logger.error("Failed to list bookings: %s", exc)
            raise DataFetchError() from exc

    def get_booking(self, booking_id: str) -> Optional[Booking]:
        try:
            return self.db.get(Booking, booking_id)
        except SQLAlchemyError as exc:
            logger.error("Failed to load booking %s: %s", booking_id, exc)
            raise DataFetchError() from exc

    def add_booking(self, booking: Booking) -> Booking:
        self.db.add(booking)
        self.db.commit()
        self.db.refresh(booking)
        return booking

    def patch_booking_status(
        self,
        booking_id: str,
        new_status: BookingStatus,
        expected: BookingStatus = BookingStatus.PENDING,
    ) -> Booking:
        """Write ``new_status`` only if the row still holds ``expected``.

        Raises ``InvalidStatusTransition`` when another writer moved the
        booking first.
        """
        result = self.db.execute(
            update(Booking)
            .where(Booking.id == booking_id, Booking.status == expected)
            .values(status=new_status)
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            self.db.rollback()
            booking = self.get_booking(booking_id)
            if booking is None:
                raise BookingNotFound()
            self.db.refresh(booking)
            raise InvalidStatusTransition(
                f"Cannot move booking from {BookingStatus(booking.status).value} to {new_status.value}"
            )
        self.db.commit()
        booking = self.get_booking(booking_id)
        self.db.refresh(booking)
        return booking
