"""
Availability routes
Read-only; no authentication required
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from hotelos.database import get_db
from hotelos.errors import HotelOSError, to_http_exception
from hotelos.models.schemas import AvailabilityResponse, RoomResponse
from hotelos.services.availability_service import AvailabilityService

router = APIRouter(prefix="/availability", tags=["availability"])


@router.get("/rooms", response_model=List[RoomResponse])
def list_available_rooms(check_in: date, check_out: date, db: Session = Depends(get_db)):
    """Rooms free for [check_in, check_out), by room number"""
    try:
        return AvailabilityService(db).list_available_rooms(check_in, check_out)
    except HotelOSError as e:
        raise to_http_exception(e)


@router.get("/rooms/{room_id}", response_model=AvailabilityResponse)
def check_availability(
    room_id: int,
    check_in: date,
    check_out: date,
    exclude_booking_id: Optional[int] = None,
    db: Session = Depends(get_db)
):
    try:
        conflicts = AvailabilityService(db).find_conflicts(room_id, check_in, check_out, exclude_booking_id)
    except HotelOSError as e:
        raise to_http_exception(e)
    return AvailabilityResponse(
        room_id=room_id,
        check_in=check_in,
        check_out=check_out,
        available=not conflicts,
        conflicting_booking_ids=[b.id for b in conflicts],
    )
