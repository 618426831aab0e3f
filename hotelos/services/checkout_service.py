"""
Checkout service - group checkout and invoicing

finalize_checkout settles one or more checked-in bookings of one guest in a
single transaction:
1. validate operator, bookings (exist, checked_in) and the single guest
2. gross = sum(room total + charges), prior_payments = sum(payments),
   base = max(gross - prior_payments, 0)
3. two tax components of TAX_COMPONENT_RATE percent of base each
4. draw the next invoice number from the invoice sequence row
5. bookings -> checked_out, rooms -> needs_service
6. invoice, booking links and frozen line items
7. guest total_visits + 1, total_spent + total
Any failure rolls the whole unit back. After commit, checkout.finalized is
published and the invoice is delivered best effort.
"""
from contextlib import ExitStack
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable, Iterable, List, Optional
import logging

from sqlalchemy import update
from sqlalchemy.dialects.postgresql import insert as postgresql_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hotelos.config import settings
from hotelos.errors import ConflictError, NotFoundError, ValidationError
from hotelos.models.events import EventType, CheckoutFinalizedData
from hotelos.models.ontology import (
    Booking, Guest, Invoice, InvoiceBooking, InvoiceItem, InvoiceSequence,
    PaymentMethod, Room, RoomStatus
)
from hotelos.services.billing_service import booking_charges_total, booking_payments_total
from hotelos.services.booking_service import require_transition
from hotelos.services.delivery_service import DeliveryReport, InvoiceDeliveryService
from hotelos.services.employee_service import EmployeeService
from hotelos.services.event_bus import event_bus, Event
from hotelos.services.locking import booking_locks, room_locks

logger = logging.getLogger(__name__)

CENTS = Decimal("0.01")

_UPSERT_INSERTS = {"postgresql": postgresql_insert, "sqlite": sqlite_insert}


@dataclass(frozen=True)
class InvoiceAmounts:
    gross: Decimal
    prior_payments: Decimal
    base: Decimal
    tax_rate: Decimal
    tax_primary: Decimal
    tax_secondary: Decimal
    total: Decimal


def compute_invoice_amounts(gross: Decimal, prior_payments: Decimal, tax_rate: Decimal) -> InvoiceAmounts:
    """Base is net of prior payments, never negative; each tax component is rounded on its own"""
    gross = Decimal(gross).quantize(CENTS, rounding=ROUND_HALF_UP)
    prior_payments = Decimal(prior_payments).quantize(CENTS, rounding=ROUND_HALF_UP)
    base = max(gross - prior_payments, Decimal("0.00"))
    tax = (base * Decimal(tax_rate) / Decimal(100)).quantize(CENTS, rounding=ROUND_HALF_UP)
    return InvoiceAmounts(
        gross=gross,
        prior_payments=prior_payments,
        base=base,
        tax_rate=Decimal(tax_rate),
        tax_primary=tax,
        tax_secondary=tax,
        total=base + tax + tax,
    )


@dataclass
class CheckoutResult:
    invoice: Invoice
    document_html: str = ""
    warnings: List[str] = field(default_factory=list)

    @property
    def email_sent(self) -> bool:
        return bool(self.invoice.email_sent)


class CheckoutService:
    """Group checkout service"""

    def __init__(self, db: Session, event_publisher: Callable[[Event], None] = None,
                 delivery_service: Optional[InvoiceDeliveryService] = None):
        self.db = db
        self._publish_event = event_publisher if event_publisher is not None else event_bus.publish
        self._delivery = delivery_service

    @property
    def delivery(self) -> InvoiceDeliveryService:
        if self._delivery is None:
            self._delivery = InvoiceDeliveryService(self.db)
        return self._delivery

    # ---------- checkout ----------

    def finalize_checkout(
        self,
        booking_ids: Iterable[int],
        recipient_tax_id: Optional[str] = None,
        company_name: Optional[str] = None,
        payment_mode: PaymentMethod = PaymentMethod.CASH,
        operator_id: Optional[int] = None,
    ) -> CheckoutResult:
        """
        Settle a checkout group and issue its invoice.

        Raises:
            ValidationError: no bookings given
            AuthorizationError: operator unknown or inactive
            NotFoundError: a booking does not exist
            ConflictError: a booking is not checked in, or the group spans guests
        """
        ids = sorted(set(booking_ids or []))
        if not ids:
            raise ValidationError("No bookings selected")
        payment_mode = PaymentMethod(payment_mode)
        recipient_tax_id = (recipient_tax_id or "").strip() or None
        company_name = (company_name or "").strip() or None

        with booking_locks.hold(*ids), ExitStack() as room_hold:
            try:
                EmployeeService(self.db).require_active(operator_id)
                invoice, room_ids = self._settle(
                    ids, recipient_tax_id, company_name, payment_mode, operator_id, room_hold
                )
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                logger.warning(f"Checkout of bookings {ids} hit a constraint: {e.orig}")
                raise ConflictError(
                    "Bookings were settled concurrently, retry the checkout",
                    context={"booking_ids": ids},
                ) from e
            except Exception:
                self.db.rollback()
                raise

        self.db.refresh(invoice)
        logger.info(
            f"Checkout committed: invoice {invoice.invoice_number} for bookings {ids}, "
            f"guest {invoice.guest_id}, total {invoice.total_amount}"
        )

        self._publish_event(Event(
            event_type=EventType.CHECKOUT_FINALIZED,
            timestamp=datetime.now(),
            data=CheckoutFinalizedData(
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                guest_id=invoice.guest_id,
                booking_ids=ids,
                room_ids=room_ids,
                total_amount=invoice.total_amount,
                operator_id=operator_id,
            ).to_dict(),
            source="checkout_service"
        ))

        report = self._deliver(invoice)
        return CheckoutResult(invoice=invoice, document_html=report.document_html, warnings=report.warnings)

    def _settle(self, ids: List[int], recipient_tax_id: Optional[str], company_name: Optional[str],
                payment_mode: PaymentMethod, operator_id: Optional[int], room_hold: ExitStack):
        """Everything between the locks and the commit; room locks are entered on room_hold"""
        bookings = self.db.query(Booking).filter(
            Booking.id.in_(ids)
        ).order_by(Booking.id).populate_existing().with_for_update().all()

        missing = sorted(set(ids) - {b.id for b in bookings})
        if missing:
            raise NotFoundError(f"Bookings not found: {missing}", context={"booking_ids": missing})

        targets = {b.id: require_transition(b, "check_out") for b in bookings}

        guest_ids = sorted({b.guest_id for b in bookings})
        if len(guest_ids) > 1:
            raise ConflictError(
                "An invoice cannot span multiple guests",
                context={"booking_ids": ids, "guest_ids": guest_ids},
            )

        room_ids = sorted({b.room_id for b in bookings})
        room_hold.enter_context(room_locks.hold(*room_ids))
        rooms = {
            r.id: r for r in self.db.query(Room).filter(
                Room.id.in_(room_ids)
            ).populate_existing().with_for_update().all()
        }
        guest = self.db.query(Guest).filter(
            Guest.id == guest_ids[0]
        ).populate_existing().with_for_update().one()

        gross = Decimal("0")
        prior_payments = Decimal("0")
        items = []
        for booking in bookings:
            room = rooms[booking.room_id]
            gross += Decimal(booking.total_amount) + booking_charges_total(booking)
            prior_payments += booking_payments_total(booking)
            nights = booking.nights
            items.append((
                room.room_number,
                f"Room {room.room_number} ({room.room_type.value}), {nights} night{'s' if nights != 1 else ''} "
                f"{booking.check_in.isoformat()} to {booking.check_out.isoformat()}",
                Decimal(booking.total_amount),
            ))
            for charge in booking.charges:
                items.append((
                    room.room_number,
                    f"{charge.description} ({charge.category.value})",
                    Decimal(charge.amount),
                ))

        amounts = compute_invoice_amounts(gross, prior_payments, settings.TAX_COMPONENT_RATE)

        now = datetime.utcnow()
        invoice = Invoice(
            invoice_number=self._next_invoice_number(now.year),
            guest_id=guest.id,
            recipient_company_name=company_name,
            recipient_tax_id=recipient_tax_id,
            gross_amount=amounts.gross,
            prior_payments=amounts.prior_payments,
            base_amount=amounts.base,
            tax_rate=amounts.tax_rate,
            tax_primary_amount=amounts.tax_primary,
            tax_secondary_amount=amounts.tax_secondary,
            total_amount=amounts.total,
            payment_mode=payment_mode,
            email_sent=False,
            created_by=operator_id,
            created_at=now,
        )
        self.db.add(invoice)
        self.db.flush()

        for booking in bookings:
            booking.status = targets[booking.id]
            self.db.add(InvoiceBooking(invoice_id=invoice.id, booking_id=booking.id))
        for room in rooms.values():
            room.status = RoomStatus.NEEDS_SERVICE
        for position, (room_number, description, amount) in enumerate(items, start=1):
            self.db.add(InvoiceItem(
                invoice_id=invoice.id,
                position=position,
                room_number=room_number,
                description=description,
                amount=amount,
            ))

        guest.total_visits = (guest.total_visits or 0) + 1
        guest.total_spent = Decimal(guest.total_spent or 0) + amounts.total
        self.db.flush()
        return invoice, room_ids

    def _next_invoice_number(self, year: int) -> str:
        """
        Next number for the year, allocated inside the checkout transaction.

        The year row is seeded with INSERT .. ON CONFLICT DO NOTHING, so the
        first checkouts of a year never collide on it. The UPDATE then takes
        the row's write lock until commit; concurrent checkouts queue behind
        it and the sequence has no gaps or repeats.
        """
        key = str(year)
        self._seed_sequence(key)
        self.db.execute(
            update(InvoiceSequence)
            .where(InvoiceSequence.sequence_key == key)
            .values(last_value=InvoiceSequence.last_value + 1)
            .execution_options(synchronize_session=False)
        )
        value = self.db.query(InvoiceSequence.last_value).filter(
            InvoiceSequence.sequence_key == key
        ).scalar()
        return f"{settings.INVOICE_PREFIX}-{year}-{value:05d}"

    def _seed_sequence(self, key: str) -> None:
        dialect = self.db.get_bind().dialect.name
        insert = _UPSERT_INSERTS.get(dialect)
        if insert is None:
            raise RuntimeError(f"Invoice numbering does not support the {dialect} dialect")
        self.db.execute(
            insert(InvoiceSequence)
            .values(sequence_key=key, last_value=0)
            .on_conflict_do_nothing(index_elements=[InvoiceSequence.sequence_key])
        )

    # ---------- delivery ----------

    def _deliver(self, invoice: Invoice, overwrite: bool = False) -> DeliveryReport:
        try:
            return self.delivery.deliver(invoice, overwrite=overwrite)
        except Exception as e:
            # The invoice is already committed; report, don't raise
            self.db.rollback()
            logger.error(f"Delivery of invoice {invoice.invoice_number} crashed: {e}", exc_info=True)
            return DeliveryReport(warnings=[f"Invoice {invoice.invoice_number}: delivery failed: {e}"])

    def redeliver(self, invoice_id: int) -> DeliveryReport:
        """Regenerate, store and email a stored invoice again"""
        invoice = self.get_invoice(invoice_id)
        if not invoice:
            raise NotFoundError(f"Invoice {invoice_id} not found", context={"invoice_id": invoice_id})
        return self._deliver(invoice, overwrite=True)

    # ---------- queries ----------

    def get_invoice(self, invoice_id: int) -> Optional[Invoice]:
        return self.db.query(Invoice).filter(Invoice.id == invoice_id).first()

    def get_invoices(self, guest_id: Optional[int] = None, limit: int = 100) -> List[Invoice]:
        query = self.db.query(Invoice)
        if guest_id:
            query = query.filter(Invoice.guest_id == guest_id)
        return query.order_by(Invoice.id.desc()).limit(limit).all()

    def render_document(self, invoice_id: int) -> str:
        invoice = self.get_invoice(invoice_id)
        if not invoice:
            raise NotFoundError(f"Invoice {invoice_id} not found", context={"invoice_id": invoice_id})
        return self.delivery.render(invoice)
