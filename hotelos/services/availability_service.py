"""
Availability service - read-only interval checks

A room is unavailable for [check_in, check_out) iff another booking on it
with status confirmed or checked_in intersects that range. Intervals are
half-open, so a stay ending on a date and another starting on it do not
overlap.
"""
from datetime import date
from typing import List, Optional
from sqlalchemy import select
from sqlalchemy.orm import Session
from hotelos.errors import ValidationError, NotFoundError
from hotelos.models.ontology import Booking, Room, ACTIVE_BOOKING_STATUSES


def intervals_overlap(a_start: date, a_end: date, b_start: date, b_end: date) -> bool:
    """Half-open interval intersection"""
    return a_start < b_end and b_start < a_end


def validate_stay_range(check_in: Optional[date], check_out: Optional[date]) -> None:
    """Reject missing, zero-night and negative ranges"""
    if check_in is None or check_out is None:
        raise ValidationError("check_in and check_out are required")
    if check_out <= check_in:
        raise ValidationError(
            "check_out must be after check_in",
            context={"check_in": check_in.isoformat(), "check_out": check_out.isoformat()},
        )


def _overlapping(check_in: date, check_out: date):
    # SQL form of intervals_overlap(Booking, requested)
    return [
        Booking.status.in_(ACTIVE_BOOKING_STATUSES),
        Booking.check_in < check_out,
        Booking.check_out > check_in,
    ]


class AvailabilityService:
    """Availability queries"""

    def __init__(self, db: Session):
        self.db = db

    def find_conflicts(self, room_id: int, check_in: date, check_out: date,
                       exclude_booking_id: Optional[int] = None) -> List[Booking]:
        """Active bookings on the room that block the range"""
        validate_stay_range(check_in, check_out)
        if not self.db.query(Room.id).filter(Room.id == room_id).first():
            raise NotFoundError(f"Room {room_id} not found", context={"room_id": room_id})

        query = self.db.query(Booking).filter(Booking.room_id == room_id, *_overlapping(check_in, check_out))
        if exclude_booking_id is not None:
            query = query.filter(Booking.id != exclude_booking_id)
        return query.order_by(Booking.check_in, Booking.id).all()

    def check_availability(self, room_id: int, check_in: date, check_out: date,
                           exclude_booking_id: Optional[int] = None) -> bool:
        return not self.find_conflicts(room_id, check_in, check_out, exclude_booking_id)

    def list_available_rooms(self, check_in: date, check_out: date) -> List[Room]:
        """Rooms free for the whole range, ordered by room number"""
        validate_stay_range(check_in, check_out)
        busy = select(Booking.room_id).where(*_overlapping(check_in, check_out))
        return self.db.query(Room).filter(
            Room.id.not_in(busy)
        ).order_by(Room.room_number).all()
