"""
Booking routes
"""
from datetime import date
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from hotelos.database import get_db
from hotelos.errors import HotelOSError, to_http_exception
from hotelos.models.ontology import Employee, BookingStatus
from hotelos.models.schemas import (
    BookingCreate, BookingCancel, BookingResponse, CheckInResponse
)
from hotelos.services.booking_service import BookingService
from hotelos.security.auth import get_current_user, require_receptionist_or_manager

router = APIRouter(prefix="/bookings", tags=["bookings"])


@router.get("", response_model=List[BookingResponse])
def list_bookings(
    status: Optional[BookingStatus] = None,
    room_id: Optional[int] = None,
    guest_id: Optional[int] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    return BookingService(db).list_bookings(status, room_id, guest_id)


@router.get("/calendar", response_model=List[BookingResponse])
def get_calendar(
    start: date,
    end: date,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Active bookings intersecting [start, end)"""
    try:
        return BookingService(db).get_calendar(start, end)
    except HotelOSError as e:
        raise to_http_exception(e)


@router.get("/{booking_id}", response_model=BookingResponse)
def get_booking(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    booking = BookingService(db).get_booking(booking_id)
    if not booking:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Booking not found")
    return booking


@router.post("", response_model=BookingResponse, status_code=status.HTTP_201_CREATED)
def create_booking(
    data: BookingCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_receptionist_or_manager)
):
    try:
        return BookingService(db).create_booking(data, current_user.id)
    except HotelOSError as e:
        raise to_http_exception(e)


@router.post("/{booking_id}/check-in", response_model=CheckInResponse)
def check_in(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_receptionist_or_manager)
):
    try:
        booking, room = BookingService(db).check_in(booking_id, current_user.id)
    except HotelOSError as e:
        raise to_http_exception(e)
    return CheckInResponse(
        booking=BookingResponse.model_validate(booking),
        room=room,
    )


@router.post("/{booking_id}/cancel", response_model=BookingResponse)
def cancel_booking(
    booking_id: int,
    data: Optional[BookingCancel] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_receptionist_or_manager)
):
    try:
        return BookingService(db).cancel(booking_id, data.reason if data else None, current_user.id)
    except HotelOSError as e:
        raise to_http_exception(e)


@router.post("/{booking_id}/no-show", response_model=BookingResponse)
def mark_no_show(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_receptionist_or_manager)
):
    try:
        return BookingService(db).mark_no_show(booking_id, current_user.id)
    except HotelOSError as e:
        raise to_http_exception(e)
