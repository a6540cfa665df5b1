from contextlib import asynccontextmanager
from datetime import date
from typing import List, Optional

from circuitbreaker import circuit
from fastapi import Depends, FastAPI, HTTPException, Query, Request, status
from fastapi.middleware.cors import CORSMiddleware
from prometheus_client import CollectorRegistry
from prometheus_fastapi_instrumentator import Instrumentator
from sqlalchemy.orm import Session

from common.availability import occupied_intervals
from common.cache import SimpleTTLCache, invalidate_schedule, schedule_cache, schedule_key
from common.config import get_settings
from common.database import Base, engine, get_db
from common.dependencies import get_booking_store, require_admin
from common.errors import apply_error_handlers
from common.logging_middleware import add_audit_middleware, configure_domain_logging
from common.models import Booking, BookingStatus, User, Venue
from common.rate_limit import apply_rate_limiter, limiter
from common.scheduling import format_clock
from common.schemas import ScheduleEntry, VenueCreate, VenueRead, VenueSchedule, VenueUpdate
from common.store import BookingStore

settings = get_settings()
venue_list_cache: SimpleTTLCache[list[VenueRead]] = SimpleTTLCache(ttl=settings.venue_list_cache_ttl)


def _invalidate_venue_caches(venue_id: str) -> None:
    venue_list_cache.clear()
    invalidate_schedule(venue_id)


@asynccontextmanager
async def lifespan(_: FastAPI):
    if settings.run_db_migrations:
        Base.metadata.create_all(bind=engine)
    yield


def create_app() -> FastAPI:
    fastapi_app = FastAPI(title="Venues Service", version="0.3.0", lifespan=lifespan)
    fastapi_app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    apply_rate_limiter(fastapi_app)
    apply_error_handlers(fastapi_app)
    add_audit_middleware(fastapi_app, "venues")
    configure_domain_logging()
    Instrumentator(registry=CollectorRegistry()).instrument(fastapi_app).expose(fastapi_app, include_in_schema=False)
    return fastapi_app


app = create_app()


@app.get("/health", tags=["health"])
def health() -> dict[str, str]:
    return {"status": "ok", "service": "venues"}


@app.post("/venues", response_model=VenueRead, status_code=status.HTTP_201_CREATED)
@limiter.limit("10/minute")
def add_venue(
    request: Request,
    venue_in: VenueCreate,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Venue:
    if db.query(Venue).filter(Venue.name == venue_in.name).first():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Venue name already exists")
    venue = Venue(**venue_in.model_dump())
    db.add(venue)
    db.commit()
    db.refresh(venue)
    _invalidate_venue_caches(venue.id)
    return venue


@app.get("/venues", response_model=List[VenueRead])
@circuit(failure_threshold=5, recovery_timeout=60)
def list_venues(
    request: Request,
    capacity: Optional[int] = None,
    location: Optional[str] = None,
    amenities: Optional[List[str]] = Query(default=None),
    db: Session = Depends(get_db),
) -> List[VenueRead]:
    def load() -> List[VenueRead]:
        query = db.query(Venue)
        if capacity:
            query = query.filter(Venue.capacity >= capacity)
        if location:
            query = query.filter(Venue.location.ilike(f"%{location}%"))
        venues = query.order_by(Venue.name).all()
        if amenities:
            venues = [venue for venue in venues if set(amenities).issubset(set(venue.amenities or []))]
        return [VenueRead.model_validate(venue) for venue in venues]

    cache_key = f"venue-list:{capacity}:{location}:{','.join(sorted(amenities or []))}"
    return venue_list_cache.get_or_set(cache_key, load)


@app.get("/venues/{venue_id}", response_model=VenueRead)
@limiter.limit("60/minute")
def get_venue(request: Request, venue_id: str, db: Session = Depends(get_db)) -> Venue:
    venue = db.get(Venue, venue_id)
    if not venue:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venue not found")
    return venue


@app.put("/venues/{venue_id}", response_model=VenueRead)
@limiter.limit("15/minute")
def update_venue(
    request: Request,
    venue_id: str,
    venue_update: VenueUpdate,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> Venue:
    venue = db.get(Venue, venue_id)
    if not venue:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venue not found")

    update_data = venue_update.model_dump(exclude_unset=True)
    for key, value in update_data.items():
        setattr(venue, key, value)
    db.commit()
    db.refresh(venue)
    _invalidate_venue_caches(venue.id)
    return venue


@app.delete("/venues/{venue_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit("15/minute")
def delete_venue(
    request: Request,
    venue_id: str,
    _: User = Depends(require_admin),
    db: Session = Depends(get_db),
) -> None:
    venue = db.get(Venue, venue_id)
    if not venue:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venue not found")
    has_bookings = (
        db.query(Booking)
        .filter(Booking.venue_id == venue_id, Booking.status != BookingStatus.CANCELLED)
        .first()
    )
    if has_bookings:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Cannot delete venue with existing bookings")
    db.delete(venue)
    db.commit()
    _invalidate_venue_caches(venue_id)


@app.get("/venues/{venue_id}/schedule", response_model=VenueSchedule)
@limiter.limit("30/minute")
def venue_schedule(
    request: Request,
    venue_id: str,
    day: date = Query(..., alias="date"),
    force_refresh: bool = False,
    db: Session = Depends(get_db),
    store: BookingStore = Depends(get_booking_store),
) -> VenueSchedule:
    """Occupied slots of a venue on a day, the same view the admission check uses.

    Cached per venue and day; admissions and status changes drop the entry.
    """
    if db.get(Venue, venue_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Venue not found")

    def load() -> VenueSchedule:
        occupied = [
            ScheduleEntry(
                booking_id=booking.id,
                start=format_clock(interval.start),
                end=format_clock(interval.end),
                status=booking.status,
                session=booking.session,
            )
            for interval, booking in occupied_intervals(store.list_bookings, venue_id, day)
        ]
        return VenueSchedule(venue_id=venue_id, date=day, occupied=occupied)

    if force_refresh:
        invalidate_schedule(venue_id, day)
    return schedule_cache.get_or_set(schedule_key(venue_id, day), load)
