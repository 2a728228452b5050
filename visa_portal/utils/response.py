import logging

from fastapi import status
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

logger = logging.getLogger(__name__)


def create_response(
    message: str | None = None,
    data=None,
    status_code: int = status.HTTP_200_OK,
) -> JSONResponse:
    """Return the shared success envelope."""
    content = {"success": True}
    if message is not None:
        content["message"] = message
    if data is not None:
        content["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=content)


def error_response(error: str, status_code: int, data=None) -> JSONResponse:
    """Return the shared failure envelope."""
    content = {"success": False, "error": error}
    if data is not None:
        content["data"] = jsonable_encoder(data)
    return JSONResponse(status_code=status_code, content=content)


def handle_exception(error: Exception, fallback_message: str = "Internal server error") -> JSONResponse:
    """Coerce raised errors into the shared response structure."""
    if isinstance(error, HTTPException):
        detail = error.detail if isinstance(error.detail, str) else str(error.detail)
        if error.status_code >= 500:
            logger.error("Request failed with %s: %s", error.status_code, detail, exc_info=error)
        return error_response(detail, error.status_code, data=getattr(error, "data", None))

    logger.error("Unhandled error: %s", error, exc_info=error)
    return error_response(fallback_message, status.HTTP_500_INTERNAL_SERVER_ERROR)
