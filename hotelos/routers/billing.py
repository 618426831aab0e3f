"""
Ledger routes
"""
from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session
from hotelos.database import get_db
from hotelos.errors import HotelOSError, to_http_exception
from hotelos.models.ontology import Employee
from hotelos.models.schemas import (
    ChargeCreate, ChargeResponse, PaymentCreate, PaymentResponse, LedgerResponse
)
from hotelos.services.billing_service import BillingService
from hotelos.security.auth import get_current_user, require_receptionist_or_manager

router = APIRouter(prefix="/billing", tags=["billing"])


@router.get("/bookings/{booking_id}", response_model=LedgerResponse)
def get_ledger(
    booking_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    try:
        return BillingService(db).get_ledger(booking_id)
    except HotelOSError as e:
        raise to_http_exception(e)


@router.post("/bookings/{booking_id}/charges", response_model=ChargeResponse,
             status_code=status.HTTP_201_CREATED)
def add_charge(
    booking_id: int,
    data: ChargeCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_receptionist_or_manager)
):
    try:
        return BillingService(db).add_charge(
            booking_id, data.description, data.amount, data.category, current_user.id
        )
    except HotelOSError as e:
        raise to_http_exception(e)


@router.post("/bookings/{booking_id}/payments", response_model=PaymentResponse,
             status_code=status.HTTP_201_CREATED)
def add_payment(
    booking_id: int,
    data: PaymentCreate,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_receptionist_or_manager)
):
    """Record a payment taken outside the system"""
    try:
        return BillingService(db).add_payment(
            booking_id, data.amount, data.method, data.reference, current_user.id
        )
    except HotelOSError as e:
        raise to_http_exception(e)
