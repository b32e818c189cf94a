"""FastAPI dependencies and response helpers shared by the domain routers"""

from functools import lru_cache

from fastapi import Depends
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from ..database import get_db
from ..document_store import DocumentStore
from ..services.notification_service import NotificationSink, build_notification_sink

ERROR_STATUS_CODES = {
    "not_found": 404,
    "validation": 400,
}


def get_store(db: Session = Depends(get_db)) -> DocumentStore:
    """Dependency injection for the document store"""
    return DocumentStore(db)


@lru_cache
def get_notifier() -> NotificationSink:
    return build_notification_sink()


def envelope_response(result: dict, success_status: int = 200) -> JSONResponse:
    """Send a service result envelope with a status code matching its outcome"""
    if result.get("success"):
        return JSONResponse(status_code=success_status, content=result)
    status_code = ERROR_STATUS_CODES.get(result.get("errorType"), 500)
    return JSONResponse(status_code=status_code, content=result)
