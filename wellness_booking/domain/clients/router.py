"""Client router - FastAPI endpoints for client profiles"""

from fastapi import APIRouter, Depends

from ...document_store import DocumentStore
from ...shared.dependencies import envelope_response, get_store
from ..bookings.router import get_workflow_service
from ..workflow.service import WorkflowService
from .service import ClientService

router = APIRouter(prefix="/clients", tags=["Clients"])


def get_client_service(store: DocumentStore = Depends(get_store)) -> ClientService:
    """Dependency injection for ClientService"""
    return ClientService(store)


@router.get("/{email}")
async def get_client_profile(
    email: str,
    service: ClientService = Depends(get_client_service),
):
    """Booking totals and loyalty points of a client"""
    return envelope_response(service.get_client_profile(email))


@router.get("/{email}/history")
async def get_client_history(
    email: str,
    service: WorkflowService = Depends(get_workflow_service),
):
    """Workflow events of a client, newest first"""
    return envelope_response(service.get_client_history(email))
