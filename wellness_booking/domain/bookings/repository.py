"""Booking repository - Document store operations for bookings"""

from typing import Optional

from ...document_store import DocumentStore, validated
from .schemas import Booking

COLLECTION = "bookings"
ACTIVE_STATUSES = ["pending", "confirmed"]


class BookingRepository:
    """Repository for booking documents"""

    @staticmethod
    def create_booking(store: DocumentStore, booking: Booking) -> str:
        """Persist a new booking and return its id"""
        return store.insert(COLLECTION, validated(Booking, booking))

    @staticmethod
    def get_booking(store: DocumentStore, booking_id: str) -> Optional[dict]:
        return store.get(COLLECTION, booking_id)

    @staticmethod
    def update_booking(store: DocumentStore, booking_id: str, fields: dict) -> dict:
        """Partial update; keys may be dotted, e.g. {"workflow.confirmed": ts}"""
        return store.update(COLLECTION, booking_id, fields)

    @staticmethod
    def get_by_invoice_number(store: DocumentStore, invoice_number: str) -> Optional[dict]:
        matches = store.query(COLLECTION, [("invoiceNumber", "==", invoice_number)])
        return matches[0] if matches else None

    @staticmethod
    def get_bookings(store: DocumentStore) -> list[dict]:
        """Get all bookings, newest first"""
        return store.query(COLLECTION, order_by="createdAt", direction="desc")

    @staticmethod
    def get_bookings_by_email(store: DocumentStore, email: str) -> list[dict]:
        return store.query(
            COLLECTION,
            [("contact.email", "==", email)],
            order_by="createdAt",
            direction="desc",
        )

    @staticmethod
    def get_active_bookings(store: DocumentStore) -> list[dict]:
        """Bookings still holding their slot"""
        return store.query(COLLECTION, [("status", "in", ACTIVE_STATUSES)])
