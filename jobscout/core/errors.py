"""
Error taxonomy and FastAPI exception handlers.

Every failure a handler can surface maps to one JobScoutError subclass.
Server-side failures carry a generic client message; details stay in the logs.
"""
import logging
from typing import Any, Dict, List, Optional

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class JobScoutError(Exception):
    code = "internal_error"
    status_code = 500
    message = "Internal server error"

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or self.message)
        if message:
            self.message = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message}


class Unauthorized(JobScoutError):
    code = "unauthorized"
    status_code = 401
    message = "Unauthorized"


class InvalidRequest(JobScoutError):
    code = "invalid_request"
    status_code = 400
    message = "Invalid request data"

    def __init__(self, details: Optional[List[Dict[str, str]]] = None, message: Optional[str] = None):
        super().__init__(message)
        self.details = details or []

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "details": self.details}


class NotFound(JobScoutError):
    code = "not_found"
    status_code = 404
    message = "Not found"


class UsageLimitExceeded(JobScoutError):
    code = "usage_limit_exceeded"
    status_code = 403
    message = "Usage limit exceeded"

    def __init__(self, usage: Dict[str, Any]):
        super().__init__()
        self.usage = usage

    def to_dict(self) -> Dict[str, Any]:
        return {
            "error": self.message,
            "message": (
                f"You've used {self.usage['used']}/{self.usage['limit']} prompts this month. "
                "Upgrade to Pro for unlimited prompts."
            ),
            "usage": self.usage,
            "needsUpgrade": True,
        }


class ProfileCreationFailed(JobScoutError):
    code = "profile_creation_failed"
    message = "Failed to create user profile"


class PersistenceError(JobScoutError):
    code = "persistence_error"
    message = "Failed to save data"


class GenerationFailed(JobScoutError):
    code = "generation_failed"
    message = "Failed to process job post with AI"


class BillingError(JobScoutError):
    code = "billing_error"
    message = "Billing request failed"


class InvalidSignature(JobScoutError):
    code = "invalid_signature"
    status_code = 400
    message = "Invalid signature"


async def jobscout_error_handler(request: Request, exc: JobScoutError):
    log_level = logging.ERROR if exc.status_code >= 500 else logging.WARNING
    logger.log(
        log_level,
        f"Request failed: path={request.url.path}, code={exc.code}, status={exc.status_code}"
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())


async def request_validation_handler(request: Request, exc: RequestValidationError):
    details = [
        {
            "field": ".".join(str(part) for part in error.get("loc", ()) if part != "body"),
            "message": error.get("msg", "Invalid value"),
        }
        for error in exc.errors()
    ]
    logger.warning(f"Request validation failed: path={request.url.path}, errors={len(details)}")
    return JSONResponse(status_code=400, content=InvalidRequest(details).to_dict())


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"Unhandled exception: path={request.url.path}", exc_info=exc)
    return JSONResponse(status_code=500, content={"error": "Internal server error"})
