"""
Test suite for the MediMate Booking API.

Contains unit tests for the booking engine and route tests for the HTTP API.
"""
import os

# Set environment for testing
os.environ["TESTING"] = "1"
os.environ.setdefault("TEST_DATABASE_URL", "sqlite:///./test.db")
