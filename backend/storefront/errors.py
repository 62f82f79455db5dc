"""
Exception handlers.

Every error response is JSON with an "error" field, except rate limiting,
which answers with a "message" field.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic.alias_generators import to_camel
from starlette.exceptions import HTTPException as StarletteHTTPException

from storefront.services.rate_limit import RATE_LIMIT_MESSAGE

logger = logging.getLogger(__name__)

MISSING_ERROR_TYPES = {"missing", "string_too_short", "too_short"}
LOCATION_PREFIXES = {"body", "query", "path", "form", "header"}

INTERNAL_ERROR = "Internal server error"


class RateLimitExceeded(Exception):
    def __init__(self, headers: dict[str, str]):
        super().__init__(RATE_LIMIT_MESSAGE)
        self.headers = headers


def missing_fields_error(fields: list[str]) -> RequestValidationError:
    """Validation error for fields that are empty after sanitizing."""
    return RequestValidationError([
        {"type": "missing", "loc": ("body", to_camel(field)), "msg": "Field required", "input": None}
        for field in fields
    ])


def _field_name(loc) -> str:
    parts = [str(p) for p in loc if str(p) not in LOCATION_PREFIXES]
    return ".".join(parts) or "body"


def validation_error_content(errors) -> dict:
    fields = {}
    for err in errors:
        fields.setdefault(_field_name(err.get("loc", ())), err.get("msg", "Invalid value"))

    if any(err.get("type") in MISSING_ERROR_TYPES for err in errors):
        message = "Missing required fields"
    else:
        message = "Invalid request data"
    return {"error": message, "fields": fields}


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=400, content=validation_error_content(exc.errors()))


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


async def rate_limit_exception_handler(request: Request, exc: RateLimitExceeded):
    return JSONResponse(status_code=429, content={"message": RATE_LIMIT_MESSAGE}, headers=exc.headers)


async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"error": INTERNAL_ERROR})


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RateLimitExceeded, rate_limit_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
