"""
Domain events published on the event bus after a transaction commits
"""
from enum import Enum
from dataclasses import dataclass, field, asdict
from datetime import datetime, date
from decimal import Decimal
from typing import Optional, Dict, Any, List


class EventType(str, Enum):
    """Event types"""
    # Bookings
    BOOKING_CREATED = "booking.created"
    BOOKING_CHECKED_IN = "booking.checked_in"
    BOOKING_CANCELLED = "booking.cancelled"
    BOOKING_NO_SHOW = "booking.no_show"

    # Ledger
    CHARGE_ADDED = "ledger.charge_added"
    PAYMENT_RECORDED = "ledger.payment_recorded"

    # Checkout and invoices
    CHECKOUT_FINALIZED = "checkout.finalized"
    INVOICE_DELIVERED = "invoice.delivered"

    # Rooms
    ROOM_STATUS_CHANGED = "room.status_changed"


@dataclass
class BaseEventData:
    """Event payload base"""
    timestamp: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> Dict[str, Any]:
        """Plain dict with JSON-friendly values"""
        result = asdict(self)
        for key, value in result.items():
            if isinstance(value, (datetime, date)):
                result[key] = value.isoformat()
            elif isinstance(value, Decimal):
                result[key] = str(value)
        return result


@dataclass
class BookingCreatedData(BaseEventData):
    booking_id: int = 0
    guest_id: int = 0
    room_id: int = 0
    room_number: str = ""
    check_in: str = ""
    check_out: str = ""
    total_amount: Decimal = Decimal("0")
    operator_id: Optional[int] = None


@dataclass
class BookingStatusChangedData(BaseEventData):
    """Check-in, cancellation and no-show share this payload"""
    booking_id: int = 0
    guest_id: int = 0
    room_id: int = 0
    room_number: str = ""
    old_status: str = ""
    new_status: str = ""
    reason: str = ""
    operator_id: Optional[int] = None


@dataclass
class LedgerEntryData(BaseEventData):
    booking_id: int = 0
    entry_id: int = 0
    kind: str = ""  # charge | payment
    amount: Decimal = Decimal("0")
    category: str = ""
    operator_id: Optional[int] = None


@dataclass
class CheckoutFinalizedData(BaseEventData):
    invoice_id: int = 0
    invoice_number: str = ""
    guest_id: int = 0
    booking_ids: List[int] = field(default_factory=list)
    room_ids: List[int] = field(default_factory=list)
    total_amount: Decimal = Decimal("0")
    operator_id: Optional[int] = None


@dataclass
class InvoiceDeliveredData(BaseEventData):
    invoice_id: int = 0
    invoice_number: str = ""
    document_url: str = ""
    email_sent: bool = False
    warnings: List[str] = field(default_factory=list)


@dataclass
class RoomStatusChangedData(BaseEventData):
    room_id: int = 0
    room_number: str = ""
    old_status: str = ""
    new_status: str = ""
    changed_by: Optional[int] = None
    reason: str = ""


EVENT_DATA_CLASSES = {
    EventType.BOOKING_CREATED: BookingCreatedData,
    EventType.BOOKING_CHECKED_IN: BookingStatusChangedData,
    EventType.BOOKING_CANCELLED: BookingStatusChangedData,
    EventType.BOOKING_NO_SHOW: BookingStatusChangedData,
    EventType.CHARGE_ADDED: LedgerEntryData,
    EventType.PAYMENT_RECORDED: LedgerEntryData,
    EventType.CHECKOUT_FINALIZED: CheckoutFinalizedData,
    EventType.INVOICE_DELIVERED: InvoiceDeliveredData,
    EventType.ROOM_STATUS_CHANGED: RoomStatusChangedData,
}
