"""Error taxonomy shared by the store and the workflow services"""


class BookingError(Exception):
    """Base class for failures reported through the result envelope"""

    error_type = "error"


class NotFoundError(BookingError):
    """Referenced booking, invoice or client does not exist"""

    error_type = "not_found"


class ValidationFailure(BookingError):
    """Missing required field or malformed document"""

    error_type = "validation"


class StoreFailure(BookingError):
    """Underlying persistence call failed"""

    error_type = "store"


class PartialWorkflowFailure(BookingError):
    """A later step of a multi-step operation failed after earlier steps were persisted"""

    error_type = "partial_workflow"

    def __init__(self, message: str, completed_steps: list[str]):
        super().__init__(message)
        self.completed_steps = completed_steps


def failure(error: Exception) -> dict:
    """Build the failure envelope for an exception"""
    result = {
        "success": False,
        "error": str(error) or error.__class__.__name__,
        "errorType": getattr(error, "error_type", "error"),
    }
    if isinstance(error, PartialWorkflowFailure):
        result["completedSteps"] = list(error.completed_steps)
    return result
