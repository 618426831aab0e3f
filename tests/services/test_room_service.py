"""
Tests for hotelos/services/room_service.py and guest_service.py
"""
import pytest
from decimal import Decimal

from hotelos.errors import ConflictError, NotFoundError
from hotelos.models.ontology import BookingStatus, RoomStatus, RoomType
from hotelos.models.schemas import GuestCreate, RoomCreate
from hotelos.services.guest_service import GuestService
from hotelos.services.room_service import RoomService


class TestRoomService:

    def test_create_and_list(self, db_session, published):
        service = RoomService(db_session, published)
        service.create_room(RoomCreate(room_number="202", room_type=RoomType.DELUXE, rate_per_night=Decimal("180")))
        service.create_room(RoomCreate(room_number="101", rate_per_night=Decimal("100")))

        assert [r.room_number for r in service.get_rooms()] == ["101", "202"]
        assert [r.room_number for r in service.get_rooms(room_type=RoomType.DELUXE)] == ["202"]
        assert service.get_room_by_number("101").status == RoomStatus.AVAILABLE

    def test_duplicate_room_number(self, db_session, sample_room, published):
        with pytest.raises(ConflictError):
            RoomService(db_session, published).create_room(
                RoomCreate(room_number="101", rate_per_night=Decimal("90"))
            )

    def test_status_change_logged(self, db_session, make_room, operator, published):
        room = make_room(status=RoomStatus.NEEDS_SERVICE)
        service = RoomService(db_session, published)

        room = service.update_room_status(room.id, RoomStatus.UNDER_CLEANING, operator.id, reason="turnover")
        room = service.update_room_status(room.id, RoomStatus.AVAILABLE, operator.id)

        assert room.status == RoomStatus.AVAILABLE
        logs = service.get_service_logs(room.id)
        assert [log.service_type for log in logs] == ["status_change", "status_change"]
        assert logs[0].description == "needs_service -> under_cleaning: turnover"
        assert logs[0].performed_by == operator.id
        assert published.types().count("room.status_changed") == 2

    def test_same_status_is_noop(self, db_session, sample_room, published):
        service = RoomService(db_session, published)
        service.update_room_status(sample_room.id, RoomStatus.AVAILABLE)
        assert service.get_service_logs(sample_room.id) == []
        assert published == []

    def test_occupied_only_through_check_in(self, db_session, sample_room, published):
        with pytest.raises(ConflictError):
            RoomService(db_session, published).update_room_status(sample_room.id, RoomStatus.OCCUPIED)

    def test_in_house_room_locked(self, db_session, sample_room, sample_guest, make_booking, published):
        make_booking(sample_guest, sample_room, status=BookingStatus.CHECKED_IN)
        with pytest.raises(ConflictError):
            RoomService(db_session, published).update_room_status(sample_room.id, RoomStatus.UNDER_CLEANING)
        db_session.refresh(sample_room)
        assert sample_room.status == RoomStatus.OCCUPIED

    def test_waits_for_room_lock(self, db_session, make_room, published, monkeypatch):
        from hotelos.config import settings
        from hotelos.services.locking import room_locks

        monkeypatch.setattr(settings, "LOCK_TIMEOUT_SECONDS", 0.05)
        room = make_room(status=RoomStatus.NEEDS_SERVICE)

        with room_locks.hold(room.id):
            with pytest.raises(ConflictError) as exc_info:
                RoomService(db_session, published).update_room_status(room.id, RoomStatus.AVAILABLE)

        assert exc_info.value.context == {"room_id": room.id}
        db_session.refresh(room)
        assert room.status == RoomStatus.NEEDS_SERVICE
        assert published == []

    def test_unknown_room(self, db_session, published):
        with pytest.raises(NotFoundError):
            RoomService(db_session, published).update_room_status(999, RoomStatus.AVAILABLE)


class TestGuestService:

    def test_create_and_search(self, db_session):
        service = GuestService(db_session)
        asha = service.create_guest(GuestCreate(full_name="Asha Rao", email="asha@example.com"))
        service.create_guest(GuestCreate(full_name="Ben Ode", phone="555-0101"))

        assert asha.total_visits == 0
        assert asha.total_spent == Decimal("0")
        assert [g.full_name for g in service.get_guests(search="Asha")] == ["Asha Rao"]
        assert [g.full_name for g in service.get_guests(search="555")] == ["Ben Ode"]
        assert len(service.get_guests()) == 2
        assert service.get_guest(999) is None
