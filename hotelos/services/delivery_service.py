"""
Invoice delivery - best effort, after the checkout has committed

render -> store (document_url) -> email (email_sent), each step retried a
bounded number of times. A step that still fails becomes a warning on the
DeliveryReport; nothing here raises into the caller or touches booking,
room or invoice amounts.
"""
from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, List, Optional
import logging
import time

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from core.notification import INotificationChannel, NotificationChannelRegistry, notification_channels
from core.storage import IDocumentStore
from hotelos.config import settings
from hotelos.errors import DownstreamDeliveryFailure
from hotelos.models.events import EventType, InvoiceDeliveredData
from hotelos.models.ontology import Invoice
from hotelos.services.event_bus import event_bus, Event
from hotelos.services.invoice_renderer import IssuerProfile, InvoiceDocument, render_invoice_html
from hotelos.storage import LocalDocumentStore

logger = logging.getLogger(__name__)


@dataclass
class DeliveryReport:
    document_html: str = ""
    document_url: Optional[str] = None
    email_sent: bool = False
    warnings: List[str] = field(default_factory=list)


class InvoiceDeliveryService:
    """Stores and emails rendered invoices"""

    def __init__(
        self,
        db: Session,
        document_store: Optional[IDocumentStore] = None,
        channels: Optional[NotificationChannelRegistry] = None,
        issuer: Optional[IssuerProfile] = None,
        max_attempts: Optional[int] = None,
        retry_delay: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        event_publisher: Callable[[Event], None] = None,
    ):
        self.db = db
        self.document_store = document_store if document_store is not None else LocalDocumentStore.from_settings()
        self.channels = channels if channels is not None else notification_channels
        self.issuer = issuer if issuer is not None else IssuerProfile.from_settings()
        self.max_attempts = max(1, max_attempts or settings.DELIVERY_MAX_ATTEMPTS)
        self.retry_delay = settings.DELIVERY_RETRY_DELAY_SECONDS if retry_delay is None else retry_delay
        self._sleep = sleep
        self._publish_event = event_publisher if event_publisher is not None else event_bus.publish

    def render(self, invoice: Invoice) -> str:
        return render_invoice_html(InvoiceDocument.from_invoice(invoice, self.issuer))

    def deliver(self, invoice: Invoice, overwrite: bool = False) -> DeliveryReport:
        """Run every delivery step for a committed invoice"""
        report = DeliveryReport(document_html=self.render(invoice))
        changes = {}

        try:
            url = self._attempt(
                "store", invoice,
                lambda: self.document_store.put(
                    f"{invoice.invoice_number}.html",
                    report.document_html.encode("utf-8"),
                    "text/html; charset=utf-8",
                    overwrite=overwrite,
                ),
            )
        except DownstreamDeliveryFailure as failure:
            report.warnings.append(failure.message)
        else:
            report.document_url = url
            changes["document_url"] = url

        recipient = invoice.guest.email
        channel = self.channels.get_channel("email")
        if not recipient:
            logger.info(f"Invoice {invoice.invoice_number}: guest has no email address, not sent")
        elif channel is None:
            logger.info(f"Invoice {invoice.invoice_number}: no email channel configured, not sent")
        else:
            try:
                self._attempt("email", invoice, lambda: self._send(channel, recipient, invoice, report.document_html))
            except DownstreamDeliveryFailure as failure:
                report.warnings.append(failure.message)
            else:
                report.email_sent = True
                changes["email_sent"] = True

        if changes:
            self._record(invoice, changes, report)

        self._publish_event(Event(
            event_type=EventType.INVOICE_DELIVERED,
            timestamp=datetime.now(),
            data=InvoiceDeliveredData(
                invoice_id=invoice.id,
                invoice_number=invoice.invoice_number,
                document_url=report.document_url or "",
                email_sent=report.email_sent,
                warnings=list(report.warnings),
            ).to_dict(),
            source="delivery_service"
        ))
        return report

    def _send(self, channel: INotificationChannel, recipient: str, invoice: Invoice, html: str) -> bool:
        return channel.send(
            recipient=recipient,
            subject=f"Invoice {invoice.invoice_number} - {self.issuer.name}",
            content=html,
            extra={
                "content_type": "html",
                "text": f"Please find invoice {invoice.invoice_number} attached.",
                "attachment_name": f"{invoice.invoice_number}.html",
            },
        )

    def _attempt(self, step: str, invoice: Invoice, action: Callable):
        """
        Run action up to max_attempts times.

        A falsy result counts as a failed attempt.

        Raises:
            DownstreamDeliveryFailure: every attempt failed
        """
        last_error = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                result = action()
            except Exception as e:
                last_error = str(e) or e.__class__.__name__
                logger.warning(
                    f"Invoice {invoice.invoice_number}: {step} attempt {attempt}/{self.max_attempts} failed: {e}",
                    exc_info=True
                )
            else:
                if result:
                    return result
                last_error = "rejected by transport"
                logger.warning(
                    f"Invoice {invoice.invoice_number}: {step} attempt {attempt}/{self.max_attempts} rejected"
                )
            if attempt < self.max_attempts and self.retry_delay:
                self._sleep(self.retry_delay)

        logger.error(f"Invoice {invoice.invoice_number}: {step} failed after {self.max_attempts} attempts")
        raise DownstreamDeliveryFailure(
            f"Invoice {invoice.invoice_number}: {step} failed after "
            f"{self.max_attempts} attempt(s): {last_error}",
            context={"invoice_id": invoice.id, "step": step},
        )

    def _record(self, invoice: Invoice, changes: dict, report: DeliveryReport) -> None:
        """Persist document_url / email_sent, the only invoice fields that change after creation"""
        try:
            for key, value in changes.items():
                setattr(invoice, key, value)
            self.db.commit()
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Invoice {invoice.invoice_number}: could not record delivery: {e}", exc_info=True)
            report.warnings.append(
                f"Invoice {invoice.invoice_number}: delivery succeeded but could not be recorded: {e}"
            )
