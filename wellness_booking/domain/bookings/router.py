"""Booking router - FastAPI endpoints for bookings"""

import logging

from fastapi import APIRouter, Depends

from ...document_store import DocumentStore
from ...services.notification_service import NotificationSink
from ...shared.dependencies import envelope_response, get_notifier, get_store
from ..workflow.service import WorkflowService
from .schemas import BookingCreate
from .service import BookingService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/bookings", tags=["Bookings"])


def get_booking_service(store: DocumentStore = Depends(get_store)) -> BookingService:
    """Dependency injection for BookingService"""
    return BookingService(store)


def get_workflow_service(
    store: DocumentStore = Depends(get_store),
    notifier: NotificationSink = Depends(get_notifier),
) -> WorkflowService:
    """Dependency injection for WorkflowService"""
    return WorkflowService(store, notifier)


# ============================================================================
# WORKFLOW
# ============================================================================


@router.post("")
async def create_booking(
    data: BookingCreate,
    service: WorkflowService = Depends(get_workflow_service),
):
    """Submit the appointment request form: booking, client profile and quote"""
    return envelope_response(service.create_full_booking(data), success_status=201)


@router.post("/{booking_id}/confirm")
async def confirm_booking(
    booking_id: str,
    service: WorkflowService = Depends(get_workflow_service),
):
    """Confirm a booking and issue its invoice"""
    return envelope_response(service.confirm_booking(booking_id))


@router.post("/{booking_id}/invoice")
async def generate_invoice(
    booking_id: str,
    service: WorkflowService = Depends(get_workflow_service),
):
    """Issue the invoice of a booking without changing its status"""
    return envelope_response(service.generate_invoice_document(booking_id), success_status=201)


# ============================================================================
# QUERIES
# ============================================================================


@router.get("")
async def get_bookings(service: BookingService = Depends(get_booking_service)):
    """All bookings, newest first"""
    return envelope_response(service.get_all_bookings())


@router.get("/booked-dates")
async def get_booked_dates(service: BookingService = Depends(get_booking_service)):
    """Slots held by pending or confirmed bookings"""
    return envelope_response(service.get_booked_dates())


@router.get("/user/{email}")
async def get_user_bookings(
    email: str,
    service: BookingService = Depends(get_booking_service),
):
    return envelope_response(service.get_user_bookings(email))


@router.get("/{booking_id}")
async def get_booking(
    booking_id: str,
    service: BookingService = Depends(get_booking_service),
):
    return envelope_response(service.get_booking(booking_id))
