"""
HotelOS front-desk engine
Availability, booking lifecycle, billing ledger and group checkout with invoicing
"""
__version__ = "1.0.0"
