"""
Room routes
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session
from hotelos.database import get_db
from hotelos.errors import HotelOSError, to_http_exception
from hotelos.models.ontology import Employee, RoomStatus, RoomType
from hotelos.models.schemas import RoomCreate, RoomResponse, RoomStatusUpdate
from hotelos.services.room_service import RoomService
from hotelos.security.auth import get_current_user, require_manager, require_receptionist_or_manager

router = APIRouter(prefix="/rooms", tags=["rooms"])


@router.get("", response_model=List[RoomResponse])
def list_rooms(
    status: Optional[RoomStatus] = None,
    room_type: Optional[RoomType] = None,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    return RoomService(db).get_rooms(status, room_type)


@router.get("/{room_id}", response_model=RoomResponse)
def get_room(
    room_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    room = RoomService(db).get_room(room_id)
    if not room:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Room not found")
    return room


@router.post("", response_model=RoomResponse, status_code=status.HTTP_201_CREATED)
def create_room(
    data: RoomCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_manager)
):
    try:
        return RoomService(db).create_room(data)
    except HotelOSError as e:
        raise to_http_exception(e)


@router.patch("/{room_id}/status", response_model=RoomResponse)
def update_room_status(
    room_id: int,
    data: RoomStatusUpdate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_receptionist_or_manager)
):
    """Housekeeping status change"""
    try:
        return RoomService(db).update_room_status(room_id, data.status, current_user.id, data.reason)
    except HotelOSError as e:
        raise to_http_exception(e)
