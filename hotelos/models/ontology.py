"""
Domain objects
Rooms, guests, bookings, the per-booking ledger and the invoices that settle it
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from sqlalchemy import (
    Column, Integer, String, DateTime, Date,
    ForeignKey, Text, Enum as SQLEnum, Boolean, Numeric, UniqueConstraint, Index
)
from sqlalchemy.orm import relationship
from hotelos.database import Base


# ============== Enums ==============

class RoomType(str, Enum):
    """Room category"""
    STANDARD = "standard"
    DELUXE = "deluxe"
    SUITE = "suite"
    PRESIDENTIAL = "presidential"


class RoomStatus(str, Enum):
    """Operational room flag; availability is derived from bookings"""
    AVAILABLE = "available"
    RESERVED = "reserved"
    OCCUPIED = "occupied"
    NEEDS_SERVICE = "needs_service"
    UNDER_CLEANING = "under_cleaning"


class BookingStatus(str, Enum):
    """Booking lifecycle"""
    CONFIRMED = "confirmed"
    CHECKED_IN = "checked_in"
    CHECKED_OUT = "checked_out"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


# Statuses that hold a room for their date range
ACTIVE_BOOKING_STATUSES = (BookingStatus.CONFIRMED, BookingStatus.CHECKED_IN)


class ChargeCategory(str, Enum):
    """Ledger charge category"""
    ROOM = "room"
    FOOD = "food"
    MINIBAR = "minibar"
    LAUNDRY = "laundry"
    SPA = "spa"
    OTHER = "other"


class PaymentMethod(str, Enum):
    """Payment method; also used as the invoice payment mode"""
    CASH = "cash"
    CREDIT_CARD = "credit_card"
    DEBIT_CARD = "debit_card"
    BANK_TRANSFER = "bank_transfer"
    ONLINE = "online"


class EmployeeRole(str, Enum):
    """Front-desk staff role"""
    MANAGER = "manager"
    RECEPTIONIST = "receptionist"


# ============== Objects ==============

class Room(Base):
    """Room with a flat nightly rate"""
    __tablename__ = "rooms"

    id = Column(Integer, primary_key=True, index=True)
    room_number = Column(String(10), unique=True, nullable=False)
    room_type = Column(SQLEnum(RoomType), nullable=False, default=RoomType.STANDARD)
    floor = Column(Integer, nullable=False, default=1)
    max_occupancy = Column(Integer, nullable=False, default=2)
    rate_per_night = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    status = Column(SQLEnum(RoomStatus), nullable=False, default=RoomStatus.AVAILABLE)
    notes = Column(Text)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    bookings = relationship("Booking", back_populates="room")
    service_logs = relationship("ServiceLog", back_populates="room")


class Guest(Base):
    """Guest; total_visits and total_spent are maintained by checkout only"""
    __tablename__ = "guests"

    id = Column(Integer, primary_key=True, index=True)
    full_name = Column(String(100), nullable=False)
    email = Column(String(100))
    phone = Column(String(20))
    address = Column(Text)
    id_type = Column(String(20))
    id_number = Column(String(50))
    nationality = Column(String(50))
    notes = Column(Text)
    total_visits = Column(Integer, nullable=False, default=0)
    total_spent = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    bookings = relationship("Booking", back_populates="guest")
    invoices = relationship("Invoice", back_populates="guest")


class Booking(Base):
    """
    Booking of one room over [check_in, check_out)
    total_amount is rate_per_night x nights, frozen at creation
    """
    __tablename__ = "bookings"
    __table_args__ = (
        Index("ix_bookings_room_dates", "room_id", "check_in", "check_out"),
    )

    id = Column(Integer, primary_key=True, index=True)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False)
    check_in = Column(Date, nullable=False)
    check_out = Column(Date, nullable=False)
    status = Column(SQLEnum(BookingStatus), nullable=False, default=BookingStatus.CONFIRMED)
    total_amount = Column(Numeric(10, 2), nullable=False, default=Decimal("0"))
    notes = Column(Text)
    cancel_reason = Column(Text)
    created_by = Column(Integer, ForeignKey("employees.id"))
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    guest = relationship("Guest", back_populates="bookings")
    room = relationship("Room", back_populates="bookings")
    charges = relationship(
        "Charge", back_populates="booking", cascade="all, delete-orphan",
        order_by="Charge.id",
    )
    payments = relationship(
        "Payment", back_populates="booking", cascade="all, delete-orphan",
        order_by="Payment.id",
    )
    creator = relationship("Employee")

    @property
    def nights(self) -> int:
        return (self.check_out - self.check_in).days


class Charge(Base):
    """Ledger charge; append-only"""
    __tablename__ = "charges"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    description = Column(String(200), nullable=False)
    category = Column(SQLEnum(ChargeCategory), nullable=False, default=ChargeCategory.OTHER)
    amount = Column(Numeric(10, 2), nullable=False)
    charged_at = Column(DateTime, default=datetime.utcnow)
    created_by = Column(Integer, ForeignKey("employees.id"))

    booking = relationship("Booking", back_populates="charges")


class Payment(Base):
    """Ledger payment; recorded, not processed"""
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(SQLEnum(PaymentMethod), nullable=False, default=PaymentMethod.CASH)
    reference = Column(String(100))
    paid_at = Column(DateTime, default=datetime.utcnow)
    created_by = Column(Integer, ForeignKey("employees.id"))

    booking = relationship("Booking", back_populates="payments")


class Invoice(Base):
    """
    Invoice settling one checkout group
    Immutable once written; only document_url and email_sent are set afterwards
    """
    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True, index=True)
    invoice_number = Column(String(30), unique=True, nullable=False)
    guest_id = Column(Integer, ForeignKey("guests.id"), nullable=False, index=True)
    recipient_company_name = Column(String(200))
    recipient_tax_id = Column(String(30))
    gross_amount = Column(Numeric(12, 2), nullable=False)
    prior_payments = Column(Numeric(12, 2), nullable=False, default=Decimal("0"))
    base_amount = Column(Numeric(12, 2), nullable=False)
    tax_rate = Column(Numeric(5, 2), nullable=False)
    tax_primary_amount = Column(Numeric(12, 2), nullable=False)
    tax_secondary_amount = Column(Numeric(12, 2), nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    payment_mode = Column(SQLEnum(PaymentMethod), nullable=False, default=PaymentMethod.CASH)
    email_sent = Column(Boolean, nullable=False, default=False)
    document_url = Column(String(500))
    created_by = Column(Integer, ForeignKey("employees.id"))
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    guest = relationship("Guest", back_populates="invoices")
    booking_links = relationship(
        "InvoiceBooking", back_populates="invoice", order_by="InvoiceBooking.booking_id",
    )
    items = relationship("InvoiceItem", back_populates="invoice", order_by="InvoiceItem.position")

    @property
    def booking_ids(self) -> list:
        return [link.booking_id for link in self.booking_links]


class InvoiceBooking(Base):
    """Invoice -> source booking link; a booking is settled by at most one invoice"""
    __tablename__ = "invoice_bookings"
    __table_args__ = (
        UniqueConstraint("booking_id", name="uq_invoice_bookings_booking"),
    )

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False)

    invoice = relationship("Invoice", back_populates="booking_links")
    booking = relationship("Booking")


class InvoiceItem(Base):
    """Frozen invoice line"""
    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False)
    room_number = Column(String(10), nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)

    invoice = relationship("Invoice", back_populates="items")


class InvoiceSequence(Base):
    """Invoice counter, one row per sequence key (invoice year)"""
    __tablename__ = "invoice_sequences"

    sequence_key = Column(String(20), primary_key=True)
    last_value = Column(Integer, nullable=False, default=0)


class ServiceLog(Base):
    """Housekeeping record for a room"""
    __tablename__ = "service_logs"

    id = Column(Integer, primary_key=True, index=True)
    room_id = Column(Integer, ForeignKey("rooms.id"), nullable=False, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"))
    service_type = Column(String(50), nullable=False)
    description = Column(Text)
    performed_by = Column(Integer, ForeignKey("employees.id"))
    created_at = Column(DateTime, default=datetime.utcnow)

    room = relationship("Room", back_populates="service_logs")


class Employee(Base):
    """Front-desk user"""
    __tablename__ = "employees"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(50), unique=True, nullable=False)
    password_hash = Column(String(255), nullable=False)
    full_name = Column(String(100), nullable=False)
    role = Column(SQLEnum(EmployeeRole), nullable=False, default=EmployeeRole.RECEPTIONIST)
    is_active = Column(Boolean, default=True)
    created_at = Column(DateTime, default=datetime.utcnow)
