from datetime import datetime
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
import logging

logger = logging.getLogger(__name__)


def _error_body(request: Request, status_code: int, message: str) -> dict:
    return {
        "success": False,
        "status": status_code,
        "message": message,
        "timestamp": datetime.utcnow().isoformat() + "Z",
        "path": str(request.url.path),
    }


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    message = exc.detail if isinstance(exc.detail, str) else str(exc.detail)
    if exc.status_code == status.HTTP_404_NOT_FOUND and message == "Not Found":
        message = "Route not found"

    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected ({exc.status_code}): {message}")

    return JSONResponse(
        status_code=exc.status_code,
        content=_error_body(request, exc.status_code, message),
        headers=getattr(exc, "headers", None),
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """Report request body/query validation failures as 400s."""
    errors = []
    for error in exc.errors():
        location = [str(part) for part in error.get("loc", ()) if part != "body"]
        errors.append({
            "field": ".".join(location),
            "message": error.get("msg", "Invalid value"),
        })

    body = _error_body(request, status.HTTP_400_BAD_REQUEST, "Validation failed")
    body["errors"] = errors
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=body)


async def internal_error_handler(request: Request, exc: Exception):
    logger.exception(f"Internal server error: {str(exc)}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=_error_body(
            request,
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "An unexpected error occurred",
        ),
    )


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(StarletteHTTPException, http_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, internal_error_handler)
