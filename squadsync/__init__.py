"""
squadsync - find common study time and book meetings without double-booking.
"""

__version__ = "0.3.0"
