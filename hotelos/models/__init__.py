# Domain models
from hotelos.models.ontology import (
    Room, Guest, Booking, Charge, Payment, Invoice, InvoiceBooking,
    InvoiceItem, InvoiceSequence, ServiceLog, Employee
)

__all__ = [
    'Room', 'Guest', 'Booking', 'Charge', 'Payment', 'Invoice', 'InvoiceBooking',
    'InvoiceItem', 'InvoiceSequence', 'ServiceLog', 'Employee'
]
