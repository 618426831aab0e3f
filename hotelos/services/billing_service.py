"""
Billing service - per-booking ledger

Charges and payments are append-only; corrections are offsetting entries.
    balance = booking.total_amount + sum(charges) - sum(payments)
Entries are accepted only while the booking is confirmed or checked in and
are serialized with checkout through the booking lock, so nothing lands on
a booking after its invoice has been drawn up.
"""
from datetime import datetime
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, Optional
import logging

from sqlalchemy.orm import Session

from hotelos.errors import ConflictError, NotFoundError, ValidationError
from hotelos.models.events import EventType, LedgerEntryData
from hotelos.models.ontology import (
    Booking, BookingStatus, Charge, ChargeCategory, Payment, PaymentMethod
)
from hotelos.services.booking_service import BOOKING_STATE_MACHINE
from hotelos.services.event_bus import event_bus, Event
from hotelos.services.locking import booking_locks

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")


def to_money(value, field: str = "amount") -> Decimal:
    """Non-negative amount quantized to cents"""
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, TypeError, ValueError):
        raise ValidationError(f"{field} must be a number", context={field: str(value)})
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f"{field} must be a non-negative number", context={field: str(value)})
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def booking_charges_total(booking: Booking) -> Decimal:
    return sum((Decimal(c.amount) for c in booking.charges), Decimal("0"))


def booking_payments_total(booking: Booking) -> Decimal:
    return sum((Decimal(p.amount) for p in booking.payments), Decimal("0"))


def booking_balance(booking: Booking) -> Decimal:
    return Decimal(booking.total_amount) + booking_charges_total(booking) - booking_payments_total(booking)


class BillingService:
    """Ledger service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None):
        self.db = db
        self._publish_event = event_publisher if event_publisher is not None else event_bus.publish

    def _get_booking(self, booking_id: int, for_update: bool = False) -> Booking:
        query = self.db.query(Booking).filter(Booking.id == booking_id)
        if for_update:
            query = query.populate_existing().with_for_update()
        booking = query.first()
        if not booking:
            raise NotFoundError(f"Booking {booking_id} not found", context={"booking_id": booking_id})
        return booking

    @staticmethod
    def _require_open(booking: Booking) -> None:
        status = BookingStatus(booking.status).value
        if BOOKING_STATE_MACHINE.is_terminal(status):
            raise ConflictError(
                f"Booking {booking.id} is {status}; its ledger is closed",
                context={"booking_id": booking.id, "status": status},
            )

    def add_charge(self, booking_id: int, description: str, amount,
                   category: ChargeCategory = ChargeCategory.OTHER,
                   operator_id: Optional[int] = None) -> Charge:
        """Append a charge"""
        if not description or not description.strip():
            raise ValidationError("description is required")
        amount = to_money(amount)

        with booking_locks.hold(booking_id):
            try:
                booking = self._get_booking(booking_id, for_update=True)
                self._require_open(booking)
                charge = Charge(
                    booking_id=booking.id,
                    description=description.strip(),
                    category=ChargeCategory(category),
                    amount=amount,
                    created_by=operator_id,
                )
                self.db.add(charge)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(charge)
        logger.info(f"Charge {charge.id} of {charge.amount} added to booking {booking_id}")
        self._publish_entry(EventType.CHARGE_ADDED, booking_id, charge.id, "charge",
                            charge.amount, charge.category.value, operator_id)
        return charge

    def add_payment(self, booking_id: int, amount,
                    method: PaymentMethod = PaymentMethod.CASH,
                    reference: Optional[str] = None,
                    operator_id: Optional[int] = None) -> Payment:
        """Record a payment received outside the system"""
        amount = to_money(amount)

        with booking_locks.hold(booking_id):
            try:
                booking = self._get_booking(booking_id, for_update=True)
                self._require_open(booking)
                payment = Payment(
                    booking_id=booking.id,
                    amount=amount,
                    method=PaymentMethod(method),
                    reference=reference,
                    created_by=operator_id,
                )
                self.db.add(payment)
                self.db.commit()
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(payment)
        logger.info(f"Payment {payment.id} of {payment.amount} recorded on booking {booking_id}")
        self._publish_entry(EventType.PAYMENT_RECORDED, booking_id, payment.id, "payment",
                            payment.amount, payment.method.value, operator_id)
        return payment

    def get_balance(self, booking_id: int) -> Decimal:
        """Outstanding amount; negative when the guest has overpaid"""
        return booking_balance(self._get_booking(booking_id))

    def get_ledger(self, booking_id: int) -> dict:
        booking = self._get_booking(booking_id)
        charges_total = booking_charges_total(booking)
        payments_total = booking_payments_total(booking)
        return {
            'booking_id': booking.id,
            'status': booking.status,
            'total_amount': booking.total_amount,
            'charges': list(booking.charges),
            'payments': list(booking.payments),
            'charges_total': charges_total,
            'payments_total': payments_total,
            'balance': Decimal(booking.total_amount) + charges_total - payments_total,
        }

    def _publish_entry(self, event_type: EventType, booking_id: int, entry_id: int, kind: str,
                       amount: Decimal, category: str, operator_id: Optional[int]) -> None:
        self._publish_event(Event(
            event_type=event_type,
            timestamp=datetime.now(),
            data=LedgerEntryData(
                booking_id=booking_id,
                entry_id=entry_id,
                kind=kind,
                amount=amount,
                category=category,
                operator_id=operator_id,
            ).to_dict(),
            source="billing_service"
        ))
