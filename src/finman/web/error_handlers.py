import logging

from fastapi import Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, Response

from finman.errors import UserError

logger = logging.getLogger(__name__)


def error_response(status_code: int, message: str, error_type: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message, "type": error_type})


async def user_error_handler(_: Request, exc: Exception) -> Response:
    """Answer with the status and type declared on the UserError subclass."""
    if not isinstance(exc, UserError):
        return await general_exception_handler(_, exc)
    return error_response(exc.status_code, str(exc), exc.error_type)


async def request_validation_error_handler(_: Request, exc: Exception) -> Response:
    """Malformed path, query or body values (e.g. a non-UUID id)."""
    errors = exc.errors() if isinstance(exc, RequestValidationError) else []
    # loc[0] is the source ("path", "query", "body")
    details = [f"{'.'.join(str(part) for part in error['loc'][1:])}: {error['msg']}" for error in errors]
    return error_response(422, "; ".join(details) or "Invalid request", "validation_error")


async def general_exception_handler(_: Request, exc: Exception) -> Response:
    """Handle unexpected errors (500)."""
    logger.exception("Unexpected error: %s", exc)
    return error_response(500, "An unexpected error occurred.", "internal_server_error")
