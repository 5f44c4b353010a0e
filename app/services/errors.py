"""
Domain errors raised by the workflow services.

Route handlers let these propagate; ``app.responses.api_exception_handler``
turns them into the standard JSON error envelope.
"""


class WorkflowError(Exception):
    """Base class for errors the API reports to the caller."""

    status_code = 500
    error_code = "WORKFLOW_ERROR"

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(WorkflowError):
    status_code = 404
    error_code = "NOT_FOUND"

    def __init__(self, resource: str, id=None):
        message = f"{resource} not found" if id is None else f"{resource} '{id}' not found"
        super().__init__(message)


class StepConflictError(WorkflowError):
    """The step (or modification) is no longer awaiting a decision."""

    status_code = 400
    error_code = "STEP_NOT_PENDING"


class ForbiddenError(WorkflowError):
    status_code = 403
    error_code = "FORBIDDEN"


class InvalidToken(WorkflowError):
    status_code = 400
    error_code = "INVALID_TOKEN"

    def __init__(self, message: str = "Invalid token"):
        super().__init__(message)


class ValidationFailed(WorkflowError):
    status_code = 400
    error_code = "VALIDATION_ERROR"
