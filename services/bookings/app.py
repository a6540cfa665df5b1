from contextlib import asynccontextmanager
from datetime import date
from typing import List, Optional

from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CollectorRegistry
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.orm import Session

from common.admission import admit_booking, cancel_booking, transition_status
from common.availability import candidate_interval, is_available
from common.config import get_settings
from common.database import Base, engine, get_db
from common.dependencies import get_booking_store, get_current_user
from common.errors import BookingNotFound, BookingPermissionError, apply_error_handlers
from common.logging_middleware import add_audit_middleware, configure_domain_logging
from common.models import Booking, BookingStatus, RoleEnum, SessionSlot, User, Venue
from common.rate_limit import apply_rate_limiter, limiter
from common.scheduling import format_clock, schedule_from_fields
from common.schemas import AvailabilityRead, BookingCreate, BookingRead, BookingStatusUpdate
from common.store import BookingStore

settings = get_settings()


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Bookings Service", version="0.3.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    apply_error_handlers(fastapi_app)
    add_audit_middleware(fastapi_app, "bookings")
    configure_domain_logging()
    Instrumentator(registry=CollectorRegistry()).instrument(fastapi_app).expose(fastapi_app, include_in_schema=False)
    return fastapi_app


app = create_app()


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "bookings"}


@app.get("/bookings", response_model=List[BookingRead])
@limiter.limit("60/minute")
def list_bookings(
    request: Request,
    venue_id: Optional[str] = None,
    day: Optional[date] = Query(None, alias="date"),
    booking_status: Optional[BookingStatus] = Query(None, alias="status"),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Booking]:
    """Admins see every booking, other users only their own."""
    query = db.query(Booking)
    if current_user.role != RoleEnum.ADMIN:
        query = query.filter(Booking.user_id == current_user.id)
    if venue_id:
        query = query.filter(Booking.venue_id == venue_id)
    if day:
        query = query.filter(Booking.date == day)
    if booking_status:
        query = query.filter(Booking.status == booking_status)
    return query.order_by(Booking.created_at.desc()).all()


@app.get("/bookings/me", response_model=List[BookingRead])
@limiter.limit("60/minute")
def list_my_bookings(
    request: Request,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
) -> List[Booking]:
    return db.query(Booking).filter(Booking.user_id == current_user.id).order_by(Booking.created_at.desc()).all()


@app.get("/bookings/availability", response_model=AvailabilityRead)
@limiter.limit("40/minute")
def check_availability(
    request: Request,
    venue_id: str,
    day: date = Query(..., alias="date"),
    session: Optional[SessionSlot] = None,
    start_time: Optional[str] = None,
    end_time: Optional[str] = None,
    store: BookingStore = Depends(get_booking_store),
) -> AvailabilityRead:
    schedule = schedule_from_fields(session, start_time, end_time)
    interval = candidate_interval(schedule)
    return AvailabilityRead(
        venue_id=venue_id,
        date=day,
        start=format_clock(interval.start),
        end=format_clock(interval.end),
        available=is_available(store.list_bookings, venue_id, day, schedule),
    )


@app.post("/bookings", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("20/minute")
def create_booking(
    request: Request,
    booking_in: BookingCreate,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
    store: BookingStore = Depends(get_booking_store),
) -> Booking:
    if db.get(Venue, booking_in.venue_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venue not found")
    return admit_booking(store, booking_in, current_user)


@app.get("/bookings/{booking_id}", response_model=BookingRead)
@limiter.limit("60/minute")
def get_booking(
    request: Request,
    booking_id: str,
    current_user: User = Depends(get_current_user),
    store: BookingStore = Depends(get_booking_store),
) -> Booking:
    booking = store.get_booking(booking_id)
    if booking is None:
        raise BookingNotFound()
    if current_user.role != RoleEnum.ADMIN and booking.user_id != current_user.id:
        raise BookingPermissionError()
    return booking


@app.post("/bookings/{booking_id}/status", response_model=BookingRead)
@limiter.limit("30/minute")
def review_booking(
    request: Request,
    booking_id: str,
    update: BookingStatusUpdate,
    current_user: User = Depends(get_current_user),
    store: BookingStore = Depends(get_booking_store),
) -> Booking:
    return transition_status(store, booking_id, update.status, current_user)


@app.delete("/bookings/{booking_id}", response_model=BookingRead)
@limiter.limit("20/minute")
def withdraw_booking(
    request: Request,
    booking_id: str,
    current_user: User = Depends(get_current_user),
    store: BookingStore = Depends(get_booking_store),
) -> Booking:
    """Cancel a pending booking. The record is kept with status CANCELLED."""
    return cancel_booking(store, booking_id, current_user)
