"""
MediMate Booking API

A FastAPI backend for medical appointment booking: staff, doctors and
patients authenticate, manage profiles, and book 15 or 30 minute slots that
may not overlap on either the doctor's or the patient's calendar.
"""

__version__ = "1.0.0"
