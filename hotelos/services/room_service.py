"""
Room service
Room records and housekeeping status changes; every manual status change
leaves a ServiceLog row and publishes room.status_changed
"""
from datetime import datetime
from typing import Callable, List, Optional
import logging

from sqlalchemy.orm import Session

from hotelos.errors import ConflictError, NotFoundError
from hotelos.models.events import EventType, RoomStatusChangedData
from hotelos.models.ontology import Booking, BookingStatus, Room, RoomStatus, RoomType, ServiceLog
from hotelos.models.schemas import RoomCreate
from hotelos.services.event_bus import event_bus, Event
from hotelos.services.locking import room_locks

logger = logging.getLogger(__name__)


def room_status_event(room: Room, old_status: RoomStatus, changed_by: Optional[int],
                      reason: str = "", source: str = "booking_service") -> Event:
    """room.status_changed event for a room whose status was just committed"""
    return Event(
        event_type=EventType.ROOM_STATUS_CHANGED,
        timestamp=datetime.now(),
        data=RoomStatusChangedData(
            room_id=room.id,
            room_number=room.room_number,
            old_status=RoomStatus(old_status).value,
            new_status=RoomStatus(room.status).value,
            changed_by=changed_by,
            reason=reason,
        ).to_dict(),
        source=source
    )


class RoomService:
    """Room service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher if event_publisher is not None else event_bus.publish

    def get_rooms(self, status: Optional[RoomStatus] = None,
                  room_type: Optional[RoomType] = None) -> List[Room]:
        query = self.db.query(Room)
        if status is not None:
            query = query.filter(Room.status == status)
        if room_type is not None:
            query = query.filter(Room.room_type == room_type)
        return query.order_by(Room.room_number).all()

    def get_room(self, room_id: int) -> Optional[Room]:
        return self.db.query(Room).filter(Room.id == room_id).first()

    def get_room_by_number(self, room_number: str) -> Optional[Room]:
        return self.db.query(Room).filter(Room.room_number == room_number).first()

    def create_room(self, data: RoomCreate) -> Room:
        if self.get_room_by_number(data.room_number):
            raise ConflictError(
                f"Room number '{data.room_number}' already exists",
                context={"room_number": data.room_number},
            )
        room = Room(**data.model_dump())
        self.db.add(room)
        self.db.commit()
        self.db.refresh(room)
        logger.info(f"Room {room.room_number} created")
        return room

    def update_room_status(self, room_id: int, new_status: RoomStatus,
                           operator_id: Optional[int] = None,
                           reason: Optional[str] = None) -> Room:
        """
        Housekeeping status change.

        occupied is set by check-in only, and a room with a checked-in guest
        keeps that status until checkout. The check runs under the room lock
        that check-in and checkout also take, against a fresh room row.
        """
        with room_locks.hold(room_id):
            try:
                room = self.db.query(Room).filter(
                    Room.id == room_id
                ).populate_existing().with_for_update().first()
                if not room:
                    raise NotFoundError(f"Room {room_id} not found", context={"room_id": room_id})

                old_status = room.status
                if new_status == old_status:
                    self.db.rollback()
                    return room

                if new_status == RoomStatus.OCCUPIED:
                    raise ConflictError(
                        "A room becomes occupied through check-in only",
                        context={"room_id": room.id, "status": old_status.value},
                    )

                in_house = self.db.query(Booking.id).filter(
                    Booking.room_id == room.id,
                    Booking.status == BookingStatus.CHECKED_IN,
                ).first()
                if in_house:
                    raise ConflictError(
                        f"Room {room.room_number} has a checked-in guest",
                        context={"room_id": room.id, "booking_id": in_house.id},
                    )

                room.status = new_status
                self.db.add(ServiceLog(
                    room_id=room.id,
                    service_type="status_change",
                    description=f"{old_status.value} -> {new_status.value}" + (f": {reason}" if reason else ""),
                    performed_by=operator_id,
                ))
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(room)
        logger.info(f"Room {room.room_number} status {old_status.value} -> {new_status.value}")
        self._publish_event(room_status_event(room, old_status, operator_id, reason or "", "room_service"))
        return room

    def get_service_logs(self, room_id: int) -> List[ServiceLog]:
        return self.db.query(ServiceLog).filter(
            ServiceLog.room_id == room_id
        ).order_by(ServiceLog.id).all()
