"""
ProcureHub API Response Utilities
Standardized response format and error handling
"""
from fastapi import HTTPException, Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from typing import Any, Dict, List
from datetime import datetime, timezone
import traceback

from .config import get_settings
from .logging_config import api_logger
from .services.errors import WorkflowError


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


# ============================================================
# SUCCESS RESPONSES
# ============================================================

def success(data: Any = None, message: str = None, meta: Dict = None) -> Dict:
    """Create success response"""
    response = {
        "ok": True,
        "success": True,
        "timestamp": _now(),
    }

    if data is not None:
        response["data"] = data

    if message:
        response["message"] = message

    if meta:
        response["meta"] = meta

    return response


def deleted(message: str = "Deleted successfully") -> Dict:
    """200 Deleted response"""
    return success(message=message)


def paginated(items: List, total: int, page: int = 1, per_page: int = 25) -> Dict:
    """Paginated list response"""
    return {
        "ok": True,
        "success": True,
        "data": items,
        "meta": {
            "total": total,
            "page": page,
            "limit": per_page,
            "pages": (total + per_page - 1) // per_page,
        },
        "timestamp": _now(),
    }


# ============================================================
# ERROR RESPONSES
# ============================================================

class ApiException(HTTPException):
    """Custom API exception with error codes"""

    def __init__(
        self,
        status_code: int,
        message: str,
        error_code: str = None,
        details: Dict = None,
    ):
        self.error_code = error_code or f"ERR_{status_code}"
        self.details = details
        super().__init__(status_code=status_code, detail=message)


def bad_request(message: str, code: str = "BAD_REQUEST", details: Dict = None):
    raise ApiException(400, message, code, details)

def not_found(resource: str = "Resource", id: str = None):
    message = f"{resource} not found" if not id else f"{resource} '{id}' not found"
    raise ApiException(404, message, "NOT_FOUND")

def validation_error(message: str, details: Dict = None):
    raise ApiException(400, message, "VALIDATION_ERROR", details)


def _error_body(message: str, error_code: str, details: Any = None) -> Dict:
    body = {
        "ok": False,
        "success": False,
        "error": message,
        "error_code": error_code,
        "timestamp": _now(),
    }
    if details is not None:
        body["details"] = details
    return body


# ============================================================
# EXCEPTION HANDLER
# ============================================================

async def api_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Global exception handler for API errors"""

    if isinstance(exc, WorkflowError):
        api_logger.warning(
            f"Workflow error: {exc.message}",
            status_code=exc.status_code,
            error_code=exc.error_code,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.message, exc.error_code, exc.details),
        )

    if isinstance(exc, ApiException):
        api_logger.warning(
            f"API Error: {exc.detail}",
            status_code=exc.status_code,
            error_code=exc.error_code,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.detail, exc.error_code, exc.details),
        )

    if isinstance(exc, RequestValidationError):
        errors = [
            {"field": ".".join(str(p) for p in err.get("loc", [])[1:]), "message": err.get("msg")}
            for err in exc.errors()
        ]
        api_logger.warning(
            "Validation failed",
            path=request.url.path,
            errors=errors,
        )
        return JSONResponse(
            status_code=400,
            content=_error_body("Missing or invalid fields", "VALIDATION_ERROR", errors),
        )

    if isinstance(exc, StarletteHTTPException):
        api_logger.warning(
            f"HTTP Error: {exc.detail}",
            status_code=exc.status_code,
            path=request.url.path,
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=_error_body(exc.detail, f"HTTP_{exc.status_code}"),
            headers=getattr(exc, "headers", None),
        )

    api_logger.error(
        f"Unexpected error: {exc}",
        error=exc,
        path=request.url.path,
        traceback="".join(traceback.format_exception(type(exc), exc, exc.__traceback__)),
    )
    message = str(exc) if get_settings().debug else "An unexpected error occurred"
    return JSONResponse(
        status_code=500,
        content=_error_body(message, "INTERNAL_ERROR"),
    )

