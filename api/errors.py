"""Error envelope for the portal API.

All failures leave the gateway as {"success": false, "error": "..."} with a
fixed message. SAP fault text, response bodies and stack traces stay in the
logs.
"""

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from connectors.sap.sap_errors import SapError
from core.observability.logging import get_logger

logger = get_logger(__name__)

NOT_FOUND = "Endpoint not found"
INTERNAL_ERROR = "Internal server error"


def error_response(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": error})


def sap_unavailable(error: SapError, message: str) -> HTTPException:
    """Log a SAP failure and build the 500 a route should raise for it."""
    extra = {"error_type": type(error).__name__}
    if error.service_name:
        extra["sap_service"] = error.service_name
    status_code = getattr(error, "status_code", None)
    if status_code:
        extra["sap_status"] = status_code
    logger.error(f"SAP request failed: {error}", extra_fields=extra)
    return HTTPException(status_code=500, detail=message)


async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    if exc.status_code == 404 and exc.detail == "Not Found":
        return error_response(404, NOT_FOUND)
    detail = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    response = error_response(exc.status_code, detail)
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"{location}: {first.get('msg', 'invalid value')}" if location else first.get("msg", "Invalid request")
    else:
        message = "Invalid request"
    return error_response(400, message)


async def sap_exception_handler(request: Request, exc: SapError) -> JSONResponse:
    logger.error(f"Unhandled SAP error on {request.url.path}: {exc}")
    return error_response(500, INTERNAL_ERROR)


async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception(f"Unhandled error on {request.url.path}: {exc}")
    return error_response(500, INTERNAL_ERROR)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(SapError, sap_exception_handler)
    app.add_exception_handler(Exception, unhandled_exception_handler)
