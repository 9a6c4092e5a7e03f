"""
Unified Error Handling Middleware for FastAPI.

Provides:
- Consistent JSON error responses
- Domain error to HTTP status mapping
- Error logging with request context
- Request ID tracking
"""

import logging
import traceback
import uuid
from typing import Callable, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

from ..domain.errors import (
    ChallengeNotFound,
    DomainError,
    InvalidClaim,
    StoreNotReady,
)

logger = logging.getLogger(__name__)

# Checked in order; first match wins
_DOMAIN_STATUS = (
    (InvalidClaim, 409),
    (ChallengeNotFound, 404),
    (StoreNotReady, 503),
    (DomainError, 400),
)


def status_for(error: Exception) -> int:
    """HTTP status code for *error* (500 for anything that is not a DomainError)."""
    for error_type, status_code in _DOMAIN_STATUS:
        if isinstance(error, error_type):
            return status_code
    return 500


class ErrorHandlerMiddleware(BaseHTTPMiddleware):
    """
    Middleware that catches all unhandled exceptions and returns
    consistent JSON error responses.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        """Process request and handle any errors."""
        request_id = str(uuid.uuid4())[:8]

        # Add request ID to state for access in handlers
        request.state.request_id = request_id

        try:
            response = await call_next(request)
            response.headers["X-Request-ID"] = request_id
            return response

        except HTTPException:
            # Let HTTP exceptions pass through to FastAPI's handler
            raise

        except DomainError as e:
            status_code = status_for(e)
            logger.warning(
                f"Domain error [{request_id}] {request.method} {request.url.path}: "
                f"{type(e).__name__}: {e}"
            )
            return JSONResponse(
                status_code=status_code,
                content=get_error_response(e, request_id),
                headers={"X-Request-ID": request_id},
            )

        except Exception as e:
            logger.error(
                f"Unhandled exception [{request_id}]: {type(e).__name__}: {e}",
                exc_info=True,
                extra={
                    "request_id": request_id,
                    "path": request.url.path,
                    "method": request.method,
                },
            )
            return JSONResponse(
                status_code=500,
                content={
                    "error": {
                        "message": "Internal server error",
                        "type": type(e).__name__,
                    },
                    "request_id": request_id,
                },
                headers={"X-Request-ID": request_id},
            )


def get_error_response(
    error: Exception,
    request_id: Optional[str] = None,
    include_traceback: bool = False,
) -> dict:
    """
    Build a standard error response dict.

    Args:
        error: The exception that occurred
        request_id: Optional request ID for tracking
        include_traceback: Whether to include full traceback (dev only)
    """
    response = {
        "error": {
            "message": str(error),
            "type": type(error).__name__,
        },
    }

    if isinstance(error, InvalidClaim):
        response["error"]["reason"] = error.reason

    if request_id:
        response["request_id"] = request_id

    if include_traceback:
        response["error"]["traceback"] = traceback.format_exc()

    return response
