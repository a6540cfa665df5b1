def test_venue_crud(venues_client, admin_headers, user_headers):
    create_resp = venues_client.post(
        "/venues",
        json={"name": "Innovation Hub", "capacity": 25, "amenities": ["Smart Screen"], "location": "Floor 10"},
        headers=admin_headers,
    )
    assert create_resp.status_code == 201
    venue_id = create_resp.json()["id"]

    forbidden = venues_client.post(
        "/venues",
        json={"name": "Side Room", "capacity": 4, "location": "Floor 1"},
        headers=user_headers,
    )
    assert forbidden.status_code == 403

    duplicate = venues_client.post(
        "/venues",
        json={"name": "Innovation Hub", "capacity": 5, "location": "Floor 2"},
        headers=admin_headers,
    )
    assert duplicate.status_code == 400

    list_resp = venues_client.get("/venues?capacity=20")
    assert list_resp.status_code == 200
    assert [venue["id"] for venue in list_resp.json()] == [venue_id]

    assert venues_client.get("/venues?amenities=Stage").json() == []

    update_resp = venues_client.put(f"/venues/{venue_id}", json={"capacity": 30}, headers=admin_headers)
    assert update_resp.status_code == 200
    assert update_resp.json()["capacity"] == 30
    assert update_resp.json()["name"] == "Innovation Hub"

    assert venues_client.get("/venues?capacity=28").json()[0]["capacity"] == 30

    delete_resp = venues_client.delete(f"/venues/{venue_id}", headers=admin_headers)
    assert delete_resp.status_code == 204
    assert venues_client.get(f"/venues/{venue_id}").status_code == 404


def test_venue_with_active_bookings_cannot_be_deleted(venues_client, bookings_client, venue_id, user_headers, admin_headers):
    booking = bookings_client.post(
        "/bookings",
        json={"venue_id": venue_id, "date": "2024-05-20", "purpose": "Town hall", "session": "FULL_DAY"},
        headers=user_headers,
    )
    assert booking.status_code == 201

    blocked = venues_client.delete(f"/venues/{venue_id}", headers=admin_headers)
    assert blocked.status_code == 400

    bookings_client.delete(f"/bookings/{booking.json()['id']}", headers=user_headers)
    assert venues_client.delete(f"/venues/{venue_id}", headers=admin_headers).status_code == 204


def test_venue_schedule(venues_client, bookings_client, venue_id, user_headers, admin_headers):
    bookings_client.post(
        "/bookings",
        json={"venue_id": venue_id, "date": "2024-05-20", "purpose": "Standup", "start_time": "13:00", "end_time": "14:00"},
        headers=user_headers,
    )
    bookings_client.post(
        "/bookings",
        json={"venue_id": venue_id, "date": "2024-05-20", "purpose": "Review", "session": "MORNING"},
        headers=admin_headers,
    )

    schedule = venues_client.get(f"/venues/{venue_id}/schedule?date=2024-05-20")
    assert schedule.status_code == 200
    occupied = schedule.json()["occupied"]
    assert [(entry["start"], entry["end"]) for entry in occupied] == [("08:00", "12:00"), ("13:00", "14:00")]
    assert occupied[0]["session"] == "MORNING"

    refreshed = venues_client.get(f"/venues/{venue_id}/schedule?date=2024-05-20&force_refresh=true")
    assert refreshed.json() == schedule.json()

    missing = venues_client.get("/venues/unknown/schedule?date=2024-05-20")
    assert missing.status_code == 404


def test_schedule_follows_admissions_and_status_changes(venues_client, bookings_client, venue_id, user_headers, admin_headers):
    url = f"/venues/{venue_id}/schedule?date=2024-05-20"
    assert venues_client.get(url).json()["occupied"] == []

    booking = bookings_client.post(
        "/bookings",
        json={"venue_id": venue_id, "date": "2024-05-20", "purpose": "Review", "session": "MORNING"},
        headers=user_headers,
    )
    assert booking.status_code == 201
    booking_id = booking.json()["id"]

    occupied = venues_client.get(url).json()["occupied"]
    assert [(entry["booking_id"], entry["status"]) for entry in occupied] == [(booking_id, "PENDING")]

    bookings_client.post(f"/bookings/{booking_id}/status", json={"status": "APPROVED"}, headers=admin_headers)
    assert venues_client.get(url).json()["occupied"][0]["status"] == "APPROVED"

    other = bookings_client.post(
        "/bookings",
        json={"venue_id": venue_id, "date": "2024-05-20", "purpose": "Party", "session": "EVENING"},
        headers=user_headers,
    )
    assert len(venues_client.get(url).json()["occupied"]) == 2

    bookings_client.delete(f"/bookings/{other.json()['id']}", headers=user_headers)
    assert [entry["booking_id"] for entry in venues_client.get(url).json()["occupied"]] == [booking_id]


def test_rejected_bookings_still_block_venue_deletion(venues_client, bookings_client, venue_id, user_headers, admin_headers):
    booking = bookings_client.post(
        "/bookings",
        json={"venue_id": venue_id, "date": "2024-05-20", "purpose": "Town hall", "session": "FULL_DAY"},
        headers=user_headers,
    )
    bookings_client.post(f"/bookings/{booking.json()['id']}/status", json={"status": "REJECTED"}, headers=admin_headers)

    response = venues_client.delete(f"/venues/{venue_id}", headers=admin_headers)
    assert response.status_code == 400
