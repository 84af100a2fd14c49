"""
Error taxonomy shared by the core and the HTTP layer.

Every error carries a ``kind`` so callers can tell them apart, and a
``retryable`` flag: only collaborator failures (DependencyError) are worth
retrying, everything else will fail the same way again.
"""
import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class BingoError(Exception):
    kind = "error"
    status_code = 400
    retryable = False

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BingoError):
    """Bad or missing input: unknown task, unsupported file, oversized file."""
    kind = "validation"
    status_code = 400


class ConflictError(BingoError):
    """Uniqueness violation or a concurrent write on the same participant."""
    kind = "conflict"
    status_code = 409


class NotFoundError(BingoError):
    kind = "not_found"
    status_code = 404


class InvalidStateError(BingoError):
    """Review attempted on a submission that is no longer pending."""
    kind = "invalid_state"
    status_code = 409


class ThrottleError(BingoError):
    """One tile per visit."""
    kind = "throttle"
    status_code = 423


class AuthorizationError(BingoError):
    kind = "authorization"
    status_code = 403


class DependencyError(BingoError):
    """Identity or storage collaborator failure."""
    kind = "dependency"
    status_code = 503
    retryable = True


async def bingo_error_handler(request: Request, exc: BingoError) -> JSONResponse:
    if isinstance(exc, DependencyError):
        logger.warning("[ERROR] %s %s -> %s: %s", request.method, request.url.path, exc.kind, exc.message)
    else:
        logger.info("[ERROR] %s %s -> %s: %s", request.method, request.url.path, exc.kind, exc.message)
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "error": exc.kind, "retryable": exc.retryable},
    )


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BingoError, bingo_error_handler)
