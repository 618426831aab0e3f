"""
Checkout route
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from hotelos.database import get_db
from hotelos.errors import HotelOSError, to_http_exception
from hotelos.models.ontology import Employee
from hotelos.models.schemas import CheckoutRequest, CheckoutResponse, InvoiceResponse
from hotelos.services.checkout_service import CheckoutService
from hotelos.security.auth import require_receptionist_or_manager

router = APIRouter(prefix="/checkout", tags=["checkout"])


@router.post("", response_model=CheckoutResponse)
def finalize_checkout(
    data: CheckoutRequest,
    db: Session = Depends(get_db),
    current_user: Employee = Depends(require_receptionist_or_manager)
):
    """
    Check out a group of bookings of one guest and issue one invoice.
    Delivery problems come back in warnings; the checkout itself has succeeded.
    """
    service = CheckoutService(db)
    try:
        result = service.finalize_checkout(
            data.booking_ids,
            recipient_tax_id=data.recipient_tax_id,
            company_name=data.company_name,
            payment_mode=data.payment_mode,
            operator_id=current_user.id,
        )
    except HotelOSError as e:
        raise to_http_exception(e)
    return CheckoutResponse(
        invoice=InvoiceResponse.model_validate(result.invoice),
        document_html=result.document_html,
        warnings=result.warnings,
    )
