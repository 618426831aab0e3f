"""
Invoice routes
"""
from typing import List, Optional
from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import HTMLResponse
from sqlalchemy.orm import Session
from hotelos.database import get_db
from hotelos.errors import HotelOSError, to_http_exception
from hotelos.models.ontology import Employee
from hotelos.models.schemas import InvoiceResponse, DeliveryResponse
from hotelos.services.checkout_service import CheckoutService
from hotelos.security.auth import get_current_user, require_receptionist_or_manager

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("", response_model=List[InvoiceResponse])
def list_invoices(
    guest_id: Optional[int] = None,
    limit: int = 100,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    return CheckoutService(db).get_invoices(guest_id, limit)


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    invoice = CheckoutService(db).get_invoice(invoice_id)
    if not invoice:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Invoice not found")
    return invoice


@router.get("/{invoice_id}/document", response_class=HTMLResponse)
def get_invoice_document(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(get_current_user)
):
    """Regenerate the invoice document from the stored invoice"""
    try:
        return HTMLResponse(CheckoutService(db).render_document(invoice_id))
    except HotelOSError as e:
        raise to_http_exception(e)


@router.post("/{invoice_id}/deliver", response_model=DeliveryResponse)
def redeliver_invoice(
    invoice_id: int,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_receptionist_or_manager)
):
    """Store and email the invoice again"""
    try:
        report = CheckoutService(db).redeliver(invoice_id)
    except HotelOSError as e:
        raise to_http_exception(e)
    invoice = CheckoutService(db).get_invoice(invoice_id)
    return DeliveryResponse(
        invoice_id=invoice_id,
        document_url=report.document_url or invoice.document_url,
        email_sent=bool(invoice.email_sent),
        warnings=report.warnings,
    )
