"""Booking service - Read operations over bookings"""

import logging
from typing import Optional

from ...document_store import DocumentStore
from ...shared.exceptions import NotFoundError, ValidationFailure, failure
from .repository import BookingRepository
from .schemas import BookedSlot

logger = logging.getLogger(__name__)

# Milestones in the order a booking reaches them
WORKFLOW_STAGES = [
    ("completed", "completed"),
    ("paid", "paid"),
    ("invoiceSent", "invoiced"),
    ("confirmed", "confirmed"),
    ("quoteSent", "quoted"),
    ("created", "created"),
]


def current_stage(booking: dict) -> Optional[str]:
    """Furthest workflow milestone a booking has reached"""
    if booking.get("status") == "cancelled":
        return "cancelled"
    workflow = booking.get("workflow") or {}
    for key, stage in WORKFLOW_STAGES:
        if workflow.get(key):
            return stage
    return None


class BookingService:
    """Service layer for booking queries"""

    def __init__(self, store: DocumentStore):
        self.store = store
        self.repo = BookingRepository()

    def get_all_bookings(self) -> dict:
        """All bookings, newest first"""
        try:
            return {"success": True, "bookings": self.repo.get_bookings(self.store)}
        except Exception as e:
            logger.error(f"❌ Failed to load bookings: {e}")
            return failure(e)

    def get_user_bookings(self, email: str) -> dict:
        """Bookings made with an email address, newest first"""
        try:
            if not email or not email.strip():
                raise ValidationFailure("Email is required")
            bookings = self.repo.get_bookings_by_email(self.store, email.strip().lower())
            return {"success": True, "bookings": bookings}
        except Exception as e:
            logger.error(f"❌ Failed to load bookings for {email}: {e}")
            return failure(e)

    def get_booked_dates(self) -> dict:
        """Date, time and duration of every pending or confirmed booking"""
        try:
            dates = [
                BookedSlot(
                    date=booking["date"], time=booking["time"], duration=booking["duration"]
                ).model_dump()
                for booking in self.repo.get_active_bookings(self.store)
            ]
            return {"success": True, "dates": dates}
        except Exception as e:
            logger.error(f"❌ Failed to load booked dates: {e}")
            return failure(e)

    def get_booking(self, booking_id: str) -> dict:
        try:
            booking = self.repo.get_booking(self.store, booking_id)
            if booking is None:
                raise NotFoundError(f"Booking {booking_id} not found")
            return {"success": True, "booking": booking, "stage": current_stage(booking)}
        except Exception as e:
            logger.error(f"❌ Failed to load booking {booking_id}: {e}")
            return failure(e)
