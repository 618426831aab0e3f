"""
Booking service - booking lifecycle

    confirmed --check_in-----> checked_in --check_out--> checked_out
    confirmed --cancel-------> cancelled
    confirmed --mark_no_show-> no_show

check_out is fired only by the checkout service, together with invoicing.
Room status follows the booking: reserved on creation, occupied on check-in,
back to available when the last active booking on a reserved room goes away.
"""
from datetime import date, datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, List, Optional, Tuple
import logging

from sqlalchemy.orm import Session

from core.engine import StateMachine, StateMachineConfig, StateTransition
from hotelos.errors import ConflictError, NotFoundError, ValidationError
from hotelos.models.events import EventType, BookingCreatedData, BookingStatusChangedData
from hotelos.models.ontology import (
    Booking, BookingStatus, Guest, Room, RoomStatus, ACTIVE_BOOKING_STATUSES
)
from hotelos.models.schemas import BookingCreate
from hotelos.services.availability_service import AvailabilityService, validate_stay_range
from hotelos.services.event_bus import event_bus, Event
from hotelos.services.locking import booking_locks, room_locks
from hotelos.services.room_service import room_status_event

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

BOOKING_STATE_MACHINE = StateMachine(StateMachineConfig(
    name="Booking",
    states=[s.value for s in BookingStatus],
    transitions=[
        StateTransition(BookingStatus.CONFIRMED.value, BookingStatus.CHECKED_IN.value, "check_in"),
        StateTransition(BookingStatus.CHECKED_IN.value, BookingStatus.CHECKED_OUT.value, "check_out"),
        StateTransition(BookingStatus.CONFIRMED.value, BookingStatus.CANCELLED.value, "cancel"),
        StateTransition(BookingStatus.CONFIRMED.value, BookingStatus.NO_SHOW.value, "mark_no_show"),
    ],
    initial_state=BookingStatus.CONFIRMED.value,
))


def require_transition(booking: Booking, trigger: str) -> BookingStatus:
    """Target status for trigger, or ConflictError when the booking's status forbids it"""
    current = BookingStatus(booking.status)
    if not BOOKING_STATE_MACHINE.can_fire(current.value, trigger):
        allowed = BOOKING_STATE_MACHINE.sources_of(trigger)
        raise ConflictError(
            f"Booking {booking.id} is {current.value}; {trigger} requires {' or '.join(allowed)}",
            context={
                "booking_id": booking.id,
                "status": current.value,
                "operation": trigger,
                "allowed_operations": BOOKING_STATE_MACHINE.triggers_from(current.value),
            },
        )
    return BookingStatus(BOOKING_STATE_MACHINE.next_state(current.value, trigger))


def stay_total(rate_per_night: Decimal, nights: int) -> Decimal:
    return (Decimal(rate_per_night) * nights).quantize(CENTS, rounding=ROUND_HALF_UP)


class BookingService:
    """Booking lifecycle service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher if event_publisher is not None else event_bus.publish

    # ---------- queries ----------

    def get_booking(self, booking_id: int) -> Optional[Booking]:
        return self.db.query(Booking).filter(Booking.id == booking_id).first()

    def list_bookings(self, status: Optional[BookingStatus] = None,
                      room_id: Optional[int] = None,
                      guest_id: Optional[int] = None) -> List[Booking]:
        query = self.db.query(Booking)
        if status:
            query = query.filter(Booking.status == status)
        if room_id:
            query = query.filter(Booking.room_id == room_id)
        if guest_id:
            query = query.filter(Booking.guest_id == guest_id)
        return query.order_by(Booking.check_in, Booking.id).all()

    def get_calendar(self, start: date, end: date) -> List[Booking]:
        """Active bookings intersecting [start, end), grouped by room"""
        validate_stay_range(start, end)
        return self.db.query(Booking).filter(
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
            Booking.check_in < end,
            Booking.check_out > start,
        ).order_by(Booking.room_id, Booking.check_in).all()

    # ---------- commands ----------

    def create_booking(self, data: BookingCreate, operator_id: Optional[int] = None) -> Booking:
        """
        Create a confirmed booking.

        The availability check and the insert run under the room lock, with
        the room row selected FOR UPDATE, so two overlapping requests for
        one room never both succeed.
        """
        validate_stay_range(data.check_in, data.check_out)
        if data.guest_id is None and data.new_guest is None:
            raise ValidationError("guest_id or new_guest is required")
        if data.guest_id is not None and data.new_guest is not None:
            raise ValidationError("Provide either guest_id or new_guest, not both")

        with room_locks.hold(data.room_id):
            try:
                room = self.db.query(Room).filter(
                    Room.id == data.room_id
                ).populate_existing().with_for_update().first()
                if not room:
                    raise NotFoundError(f"Room {data.room_id} not found", context={"room_id": data.room_id})

                if data.guest_id is not None:
                    guest = self.db.query(Guest).filter(Guest.id == data.guest_id).first()
                    if not guest:
                        raise NotFoundError(f"Guest {data.guest_id} not found", context={"guest_id": data.guest_id})

                conflicts = AvailabilityService(self.db).find_conflicts(room.id, data.check_in, data.check_out)
                if conflicts:
                    conflict_ids = [b.id for b in conflicts]
                    logger.info(f"Room {room.room_number} unavailable, conflicts with bookings {conflict_ids}")
                    raise ConflictError(
                        f"Room {room.room_number} is not available from {data.check_in} to {data.check_out}",
                        context={"room_id": room.id, "conflicting_booking_ids": conflict_ids},
                    )

                if data.new_guest is not None:
                    guest = Guest(**data.new_guest.model_dump())
                    self.db.add(guest)
                    self.db.flush()

                nights = (data.check_out - data.check_in).days
                booking = Booking(
                    guest_id=guest.id,
                    room_id=room.id,
                    check_in=data.check_in,
                    check_out=data.check_out,
                    status=BookingStatus(BOOKING_STATE_MACHINE.initial_state),
                    total_amount=stay_total(room.rate_per_night, nights),
                    notes=data.notes,
                    created_by=operator_id,
                )
                self.db.add(booking)

                old_room_status = room.status
                if room.status == RoomStatus.AVAILABLE:
                    room.status = RoomStatus.RESERVED

                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(booking)
        logger.info(
            f"Booking {booking.id} created: room {room.room_number} "
            f"{booking.check_in}..{booking.check_out}, total {booking.total_amount}"
        )

        self._publish_event(Event(
            event_type=EventType.BOOKING_CREATED,
            timestamp=datetime.now(),
            data=BookingCreatedData(
                booking_id=booking.id,
                guest_id=booking.guest_id,
                room_id=room.id,
                room_number=room.room_number,
                check_in=booking.check_in.isoformat(),
                check_out=booking.check_out.isoformat(),
                total_amount=booking.total_amount,
                operator_id=operator_id,
            ).to_dict(),
            source="booking_service"
        ))
        if old_room_status != room.status:
            self._publish_event(room_status_event(room, old_room_status, operator_id, "booking created"))

        return booking

    def check_in(self, booking_id: int, operator_id: Optional[int] = None) -> Tuple[Booking, Room]:
        """confirmed -> checked_in; the room becomes occupied"""
        with booking_locks.hold(booking_id):
            try:
                booking = self._lock_booking(booking_id)
                target = require_transition(booking, "check_in")
                with room_locks.hold(booking.room_id):
                    room = self.db.query(Room).filter(
                        Room.id == booking.room_id
                    ).populate_existing().with_for_update().one()

                    old_status = booking.status
                    old_room_status = room.status
                    booking.status = target
                    room.status = RoomStatus.OCCUPIED
                    self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(booking)
        self.db.refresh(room)
        logger.info(f"Booking {booking.id} checked in to room {room.room_number}")

        self._publish_status_change(EventType.BOOKING_CHECKED_IN, booking, room, old_status, operator_id)
        if old_room_status != room.status:
            self._publish_event(room_status_event(room, old_room_status, operator_id, "check-in"))
        return booking, room

    def cancel(self, booking_id: int, reason: Optional[str] = None,
               operator_id: Optional[int] = None) -> Booking:
        """confirmed -> cancelled; a checked-in booking can only leave through checkout"""
        return self._close(booking_id, "cancel", EventType.BOOKING_CANCELLED, reason, operator_id)

    def mark_no_show(self, booking_id: int, operator_id: Optional[int] = None) -> Booking:
        """confirmed -> no_show"""
        return self._close(booking_id, "mark_no_show", EventType.BOOKING_NO_SHOW, None, operator_id)

    # ---------- helpers ----------

    def _lock_booking(self, booking_id: int) -> Booking:
        booking = self.db.query(Booking).filter(
            Booking.id == booking_id
        ).populate_existing().with_for_update().first()
        if not booking:
            raise NotFoundError(f"Booking {booking_id} not found", context={"booking_id": booking_id})
        return booking

    def _close(self, booking_id: int, trigger: str, event_type: EventType,
               reason: Optional[str], operator_id: Optional[int]) -> Booking:
        with booking_locks.hold(booking_id):
            try:
                booking = self._lock_booking(booking_id)
                target = require_transition(booking, trigger)
                with room_locks.hold(booking.room_id):
                    old_status = booking.status
                    booking.status = target
                    if reason:
                        booking.cancel_reason = reason
                    self.db.flush()

                    room = self.db.query(Room).filter(
                        Room.id == booking.room_id
                    ).populate_existing().with_for_update().one()
                    old_room_status = room.status
                    self._release_room(room)
                    self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(booking)
        logger.info(f"Booking {booking.id} {old_status.value} -> {booking.status.value}")

        self._publish_status_change(event_type, booking, room, old_status, operator_id, reason or "")
        if old_room_status != room.status:
            self._publish_event(room_status_event(room, old_room_status, operator_id, trigger))
        return booking

    def _release_room(self, room: Room) -> None:
        """A reserved room with no remaining active booking becomes available"""
        if room.status != RoomStatus.RESERVED:
            return
        still_held = self.db.query(Booking.id).filter(
            Booking.room_id == room.id,
            Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        ).first()
        if not still_held:
            room.status = RoomStatus.AVAILABLE

    def _publish_status_change(self, event_type: EventType, booking: Booking, room: Room,
                               old_status: BookingStatus, operator_id: Optional[int],
                               reason: str = "") -> None:
        self._publish_event(Event(
            event_type=event_type,
            timestamp=datetime.now(),
            data=BookingStatusChangedData(
                booking_id=booking.id,
                guest_id=booking.guest_id,
                room_id=room.id,
                room_number=room.room_number,
                old_status=old_status.value,
                new_status=booking.status.value,
                reason=reason,
                operator_id=operator_id,
            ).to_dict(),
            source="booking_service"
        ))
