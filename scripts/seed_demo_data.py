#!/usr/bin/env python3
"""Seed demo users, venues and bookings into the configured database.

Safe to run repeatedly: rows that already exist are left untouched.
"""
from datetime import date, datetime, timedelta

from sqlalchemy.orm import Session

from common.auth import get_password_hash
from common.database import Base, SessionLocal, engine
from common.models import Booking, BookingStatus, RoleEnum, SessionSlot, User, Venue

DEMO_PASSWORD = "Passw0rd!"

USERS = [
    {"name": "Alex Rivera", "username": "alex", "email": "alex@nexus.com", "role": RoleEnum.USER},
    {"name": "Sarah Chen", "username": "sarah", "email": "sarah@nexus.com", "role": RoleEnum.ADMIN},
]

VENUES = [
    {
        "id": "v1",
        "name": "Skyline Boardroom",
        "description": "High-tech meeting room with panoramic city views.",
        "capacity": 12,
        "amenities": ["4K Projector", "Video Conf", "Whiteboard", "Coffee Bar"],
        "location": "Floor 42, East Wing",
    },
    {
        "id": "v2",
        "name": "Innovation Hub",
        "description": "Collaborative space designed for brainstorming and agile teams.",
        "capacity": 25,
        "amenities": ["Flexible Seating", "Smart Screen", "Acoustic Panels"],
        "location": "Floor 10, West Wing",
    },
    {
        "id": "v3",
        "name": "Grand Assembly Hall",
        "description": "Large auditorium for town halls and guest speaker events.",
        "capacity": 150,
        "amenities": ["Stage", "Surround Sound", "Dimmable Lighting"],
        "location": "Ground Floor, North Atrium",
    },
]

BOOKINGS = [
    {
        "id": "b1",
        "venue_id": "v1",
        "username": "alex",
        "date": date(2024, 5, 20),
        "session": SessionSlot.MORNING,
        "status": BookingStatus.APPROVED,
        "age": timedelta(days=1),
        "purpose": "Quarterly Review",
    },
    {
        "id": "b2",
        "venue_id": "v2",
        "username": "alex",
        "date": date(2024, 5, 22),
        "session": SessionSlot.AFTERNOON,
        "status": BookingStatus.PENDING,
        "age": timedelta(hours=12),
        "purpose": "Team Retro",
    },
]


def seed(db: Session) -> None:
    users = {}
    for data in USERS:
        user = db.query(User).filter(User.username == data["username"]).first()
        if user is None:
            user = User(hashed_password=get_password_hash(DEMO_PASSWORD), **data)
            db.add(user)
        users[data["username"]] = user

    for data in VENUES:
        if db.get(Venue, data["id"]) is None:
            db.add(Venue(**data))
    db.flush()

    now = datetime.utcnow()
    for data in BOOKINGS:
        if db.get(Booking, data["id"]) is not None:
            continue
        owner = users[data["username"]]
        db.add(
            Booking(
                id=data["id"],
                venue_id=data["venue_id"],
                user_id=owner.id,
                user_name=owner.name,
                date=data["date"],
                session=data["session"],
                status=data["status"],
                purpose=data["purpose"],
                created_at=now - data["age"],
            )
        )
    db.commit()


if __name__ == "__main__":
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        seed(session)
        print("Demo data seeded.")
    finally:
        session.close()
