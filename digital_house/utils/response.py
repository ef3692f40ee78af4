import logging

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from digital_house.utils.errors import ServiceError

logger = logging.getLogger(__name__)


def create_response(data: dict | None = None, status_code: int = status.HTTP_200_OK) -> JSONResponse:
    """Return the shared `{ok: true, ...data}` payload."""
    encoded_data = jsonable_encoder(data or {})
    return JSONResponse(status_code=status_code, content={"ok": True, **encoded_data})


def error_response(message: str, status_code: int = status.HTTP_400_BAD_REQUEST, errors=None) -> JSONResponse:
    content = {"ok": False, "message": message}
    if errors is not None:
        content["errors"] = jsonable_encoder(errors)
    return JSONResponse(status_code=status_code, content=content)


def handle_exception(error: Exception, fallback_message: str = "Server error") -> JSONResponse:
    """Coerce raised errors into the shared response structure."""
    if isinstance(error, ServiceError):
        return error_response(error.message, error.status_code)

    if isinstance(error, HTTPException):
        detail = error.detail if isinstance(error.detail, str) else str(error.detail)
        return error_response(detail, error.status_code)

    logger.exception("Unhandled error: %s", error)
    return error_response(fallback_message, status.HTTP_500_INTERNAL_SERVER_ERROR)


async def validation_exception_handler(_request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"field": ".".join(str(part) for part in err.get("loc", ()) if part != "body"), "message": err.get("msg")}
        for err in exc.errors()
    ]
    return error_response("Validation error", status.HTTP_400_BAD_REQUEST, errors=errors)


async def service_exception_handler(_request, exc: Exception) -> JSONResponse:
    """Route-level handler for errors raised outside a router's try block (dependencies, 404s)."""
    return handle_exception(exc)
