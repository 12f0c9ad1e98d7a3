"""
salonslots - availability and slot computation for salon bookings.
"""

__version__ = "1.0.0"
