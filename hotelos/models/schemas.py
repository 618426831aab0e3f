"""
Pydantic schemas
Request/response validation for the API
"""
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, List
from pydantic import BaseModel, Field, ConfigDict
from hotelos.models.ontology import (
    RoomType, RoomStatus, BookingStatus, ChargeCategory, PaymentMethod, EmployeeRole
)


# ============== Auth Schemas ==============

class LoginRequest(BaseModel):
    username: str = Field(..., max_length=50)
    password: str


class EmployeeResponse(BaseModel):
    id: int
    username: str
    full_name: str
    role: EmployeeRole
    is_active: bool
    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    employee: EmployeeResponse


# ============== Room Schemas ==============

class RoomBase(BaseModel):
    room_number: str = Field(..., max_length=10)
    room_type: RoomType = RoomType.STANDARD
    floor: int = Field(default=1, ge=0)
    max_occupancy: int = Field(default=2, ge=1)
    rate_per_night: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    notes: Optional[str] = None


class RoomCreate(RoomBase):
    pass


class RoomResponse(RoomBase):
    id: int
    status: RoomStatus
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class RoomStatusUpdate(BaseModel):
    status: RoomStatus
    reason: Optional[str] = None


# ============== Guest Schemas ==============

class GuestBase(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=100)
    email: Optional[str] = Field(None, max_length=100)
    phone: Optional[str] = Field(None, max_length=20)
    address: Optional[str] = None
    id_type: Optional[str] = Field(None, max_length=20)
    id_number: Optional[str] = Field(None, max_length=50)
    nationality: Optional[str] = Field(None, max_length=50)
    notes: Optional[str] = None


class GuestCreate(GuestBase):
    pass


class GuestResponse(GuestBase):
    id: int
    total_visits: int
    total_spent: Decimal
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


# ============== Availability Schemas ==============

class AvailabilityResponse(BaseModel):
    room_id: int
    check_in: date
    check_out: date
    available: bool
    conflicting_booking_ids: List[int] = []


# ============== Booking Schemas ==============

class BookingCreate(BaseModel):
    """Either guest_id or new_guest; new_guest is created with the booking"""
    guest_id: Optional[int] = None
    new_guest: Optional[GuestCreate] = None
    room_id: int
    check_in: date
    check_out: date
    notes: Optional[str] = None


class BookingResponse(BaseModel):
    id: int
    guest_id: int
    room_id: int
    check_in: date
    check_out: date
    nights: int
    status: BookingStatus
    total_amount: Decimal
    notes: Optional[str] = None
    cancel_reason: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    model_config = ConfigDict(from_attributes=True)


class BookingCancel(BaseModel):
    reason: Optional[str] = None


class CheckInResponse(BaseModel):
    booking: BookingResponse
    room: RoomResponse


# ============== Ledger Schemas ==============

class ChargeCreate(BaseModel):
    description: str = Field(..., min_length=1, max_length=200)
    amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    category: ChargeCategory = ChargeCategory.OTHER


class ChargeResponse(BaseModel):
    id: int
    booking_id: int
    description: str
    category: ChargeCategory
    amount: Decimal
    charged_at: datetime
    model_config = ConfigDict(from_attributes=True)


class PaymentCreate(BaseModel):
    amount: Decimal = Field(..., ge=0, max_digits=10, decimal_places=2)
    method: PaymentMethod = PaymentMethod.CASH
    reference: Optional[str] = Field(None, max_length=100)


class PaymentResponse(BaseModel):
    id: int
    booking_id: int
    amount: Decimal
    method: PaymentMethod
    reference: Optional[str] = None
    paid_at: datetime
    model_config = ConfigDict(from_attributes=True)


class LedgerResponse(BaseModel):
    booking_id: int
    status: BookingStatus
    total_amount: Decimal
    charges: List[ChargeResponse]
    payments: List[PaymentResponse]
    charges_total: Decimal
    payments_total: Decimal
    balance: Decimal


# ============== Checkout / Invoice Schemas ==============

class CheckoutRequest(BaseModel):
    booking_ids: List[int]
    recipient_tax_id: Optional[str] = Field(None, max_length=30)
    company_name: Optional[str] = Field(None, max_length=200)
    payment_mode: PaymentMethod = PaymentMethod.CASH


class InvoiceItemResponse(BaseModel):
    position: int
    room_number: str
    description: str
    amount: Decimal
    model_config = ConfigDict(from_attributes=True)


class InvoiceResponse(BaseModel):
    id: int
    invoice_number: str
    guest_id: int
    booking_ids: List[int]
    recipient_company_name: Optional[str] = None
    recipient_tax_id: Optional[str] = None
    gross_amount: Decimal
    prior_payments: Decimal
    base_amount: Decimal
    tax_rate: Decimal
    tax_primary_amount: Decimal
    tax_secondary_amount: Decimal
    total_amount: Decimal
    payment_mode: PaymentMethod
    email_sent: bool
    document_url: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    items: List[InvoiceItemResponse] = []
    model_config = ConfigDict(from_attributes=True)


class CheckoutResponse(BaseModel):
    invoice: InvoiceResponse
    document_html: str
    warnings: List[str] = []


class DeliveryResponse(BaseModel):
    invoice_id: int
    document_url: Optional[str] = None
    email_sent: bool
    warnings: List[str] = []
