# API routers
from hotelos.routers import (
    auth, availability, rooms, guests, bookings, billing, checkout, invoices
)

__all__ = [
    'auth', 'availability', 'rooms', 'guests', 'bookings', 'billing', 'checkout', 'invoices'
]
