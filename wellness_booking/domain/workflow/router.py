"""Invoice router - FastAPI endpoints for invoice payments"""

from fastapi import APIRouter, Depends

from ...shared.dependencies import envelope_response
from ..bookings.router import get_workflow_service
from .schemas import PaymentCreate
from .service import WorkflowService

router = APIRouter(prefix="/invoices", tags=["Invoices"])


@router.post("/{invoice_id}/payments")
async def record_payment(
    invoice_id: str,
    data: PaymentCreate,
    service: WorkflowService = Depends(get_workflow_service),
):
    """Record a cash, card, transfer or check payment against an invoice"""
    return envelope_response(service.record_payment(invoice_id, data), success_status=201)
