# Business services
from hotelos.services.availability_service import AvailabilityService
from hotelos.services.booking_service import BookingService
from hotelos.services.billing_service import BillingService
from hotelos.services.checkout_service import CheckoutService
from hotelos.services.delivery_service import InvoiceDeliveryService
from hotelos.services.room_service import RoomService
from hotelos.services.guest_service import GuestService
from hotelos.services.employee_service import EmployeeService

__all__ = [
    'AvailabilityService', 'BookingService', 'BillingService',
    'CheckoutService', 'InvoiceDeliveryService', 'RoomService',
    'GuestService', 'EmployeeService'
]
