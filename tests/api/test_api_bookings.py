"""
Booking, room, guest and availability API tests
"""
from fastapi.testclient import TestClient

from hotelos.models.ontology import RoomStatus


def _booking_payload(room_id, guest_id=None, check_in="2024-06-05", check_out="2024-06-08", **extra):
    payload = {"room_id": room_id, "check_in": check_in, "check_out": check_out, **extra}
    if guest_id is not None:
        payload["guest_id"] = guest_id
    return payload


class TestRoomsApi:

    def test_manager_creates_room(self, client: TestClient, manager_auth_headers):
        response = client.post("/rooms", json={
            "room_number": "301", "room_type": "suite", "rate_per_night": "320.00"
        }, headers=manager_auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["room_number"] == "301"
        assert data["status"] == "available"

    def test_duplicate_room_number(self, client: TestClient, sample_room, manager_auth_headers):
        response = client.post("/rooms", json={"room_number": "101", "rate_per_night": "90"},
                               headers=manager_auth_headers)
        assert response.status_code == 409

    def test_list_and_filter(self, client: TestClient, make_room, auth_headers):
        make_room("102", status=RoomStatus.NEEDS_SERVICE)
        make_room("101")
        response = client.get("/rooms", headers=auth_headers)
        assert [r["room_number"] for r in response.json()] == ["101", "102"]

        response = client.get("/rooms", params={"status": "needs_service"}, headers=auth_headers)
        assert [r["room_number"] for r in response.json()] == ["102"]

    def test_housekeeping_status(self, client: TestClient, make_room, auth_headers):
        room = make_room(status=RoomStatus.NEEDS_SERVICE)
        response = client.patch(f"/rooms/{room.id}/status", json={"status": "under_cleaning"},
                                headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "under_cleaning"

    def test_occupied_rejected(self, client: TestClient, sample_room, auth_headers):
        response = client.patch(f"/rooms/{sample_room.id}/status", json={"status": "occupied"},
                                headers=auth_headers)
        assert response.status_code == 409

    def test_room_not_found(self, client: TestClient, auth_headers):
        assert client.get("/rooms/999", headers=auth_headers).status_code == 404


class TestAvailabilityApi:

    def test_room_availability(self, client: TestClient, sample_room, sample_guest, make_booking):
        booking = make_booking(sample_guest, sample_room)

        response = client.get(f"/availability/rooms/{sample_room.id}",
                              params={"check_in": "2024-06-09", "check_out": "2024-06-11"})
        assert response.status_code == 200
        data = response.json()
        assert data["available"] is False
        assert data["conflicting_booking_ids"] == [booking.id]

        response = client.get(f"/availability/rooms/{sample_room.id}",
                              params={"check_in": "2024-06-10", "check_out": "2024-06-11"})
        assert response.json()["available"] is True

    def test_zero_night_is_bad_request(self, client: TestClient, sample_room):
        response = client.get(f"/availability/rooms/{sample_room.id}",
                              params={"check_in": "2024-06-10", "check_out": "2024-06-10"})
        assert response.status_code == 400

    def test_unknown_room(self, client: TestClient):
        response = client.get("/availability/rooms/999",
                              params={"check_in": "2024-06-10", "check_out": "2024-06-11"})
        assert response.status_code == 404

    def test_available_rooms(self, client: TestClient, make_room):
        make_room("102")
        make_room("101")
        response = client.get("/availability/rooms",
                              params={"check_in": "2024-06-10", "check_out": "2024-06-11"})
        assert [r["room_number"] for r in response.json()] == ["101", "102"]


class TestBookingsApi:

    def test_requires_token(self, client: TestClient, sample_room, sample_guest):
        response = client.post("/bookings", json=_booking_payload(sample_room.id, sample_guest.id))
        assert response.status_code == 401

    def test_create_booking(self, client: TestClient, make_room, sample_guest, auth_headers, receptionist):
        room = make_room(rate="150.00")
        response = client.post("/bookings", json=_booking_payload(room.id, sample_guest.id),
                               headers=auth_headers)

        assert response.status_code == 201
        data = response.json()
        assert data["status"] == "confirmed"
        assert data["nights"] == 3
        assert float(data["total_amount"]) == 450.0
        assert data["created_by"] == receptionist.id

    def test_create_with_new_guest(self, client: TestClient, sample_room, auth_headers):
        response = client.post("/bookings", json=_booking_payload(
            sample_room.id, new_guest={"full_name": "Walk In", "email": "walkin@example.com"}
        ), headers=auth_headers)
        assert response.status_code == 201

        guest = client.get(f"/guests/{response.json()['guest_id']}", headers=auth_headers).json()
        assert guest["full_name"] == "Walk In"

    def test_overlap_conflict(self, client: TestClient, sample_room, sample_guest, make_booking, auth_headers):
        make_booking(sample_guest, sample_room)
        response = client.post("/bookings", json=_booking_payload(
            sample_room.id, sample_guest.id, "2024-06-09", "2024-06-12"
        ), headers=auth_headers)
        assert response.status_code == 409

    def test_zero_night(self, client: TestClient, sample_room, sample_guest, auth_headers):
        response = client.post("/bookings", json=_booking_payload(
            sample_room.id, sample_guest.id, "2024-06-09", "2024-06-09"
        ), headers=auth_headers)
        assert response.status_code == 400

    def test_unknown_room(self, client: TestClient, sample_guest, auth_headers):
        response = client.post("/bookings", json=_booking_payload(999, sample_guest.id), headers=auth_headers)
        assert response.status_code == 404

    def test_lifecycle(self, client: TestClient, sample_room, sample_guest, auth_headers):
        booking_id = client.post("/bookings", json=_booking_payload(sample_room.id, sample_guest.id),
                                 headers=auth_headers).json()["id"]

        response = client.post(f"/bookings/{booking_id}/check-in", headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["booking"]["status"] == "checked_in"
        assert response.json()["room"]["status"] == "occupied"

        response = client.post(f"/bookings/{booking_id}/cancel", json={"reason": "late"}, headers=auth_headers)
        assert response.status_code == 409

    def test_cancel(self, client: TestClient, sample_room, sample_guest, make_booking, auth_headers):
        booking = make_booking(sample_guest, sample_room)
        response = client.post(f"/bookings/{booking.id}/cancel", json={"reason": "plans changed"},
                               headers=auth_headers)
        assert response.status_code == 200
        assert response.json()["status"] == "cancelled"
        assert response.json()["cancel_reason"] == "plans changed"

    def test_no_show(self, client: TestClient, sample_room, sample_guest, make_booking, auth_headers):
        booking = make_booking(sample_guest, sample_room)
        response = client.post(f"/bookings/{booking.id}/no-show", headers=auth_headers)
        assert response.json()["status"] == "no_show"

    def test_list_and_calendar(self, client: TestClient, sample_room, sample_guest, make_booking, auth_headers):
        booking = make_booking(sample_guest, sample_room)
        assert [b["id"] for b in client.get("/bookings", headers=auth_headers).json()] == [booking.id]

        response = client.get("/bookings/calendar", params={"start": "2024-06-01", "end": "2024-06-30"},
                              headers=auth_headers)
        assert [b["id"] for b in response.json()] == [booking.id]

        assert client.get(f"/bookings/{booking.id}", headers=auth_headers).status_code == 200
        assert client.get("/bookings/999", headers=auth_headers).status_code == 404
