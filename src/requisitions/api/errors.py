"""Exception-to-HTTP mapping for the Requisitions API.

Every failure leaves the API as ``{"code": ..., "error": ...}``. ``error`` is
the field → messages map for validation failures and a message otherwise.
"""

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from protean.exceptions import (
    ExpectedVersionError,
    InvalidOperationError,
    InvalidStateError,
    ObjectNotFoundError,
    ValidationError,
)

from requisitions.order.errors import ErrorCode, ForbiddenTransitionError

logger = structlog.get_logger(__name__)


def _error(status_code: int, code: ErrorCode, error) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"code": code.value, "error": error})


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        return _error(422, ErrorCode.VALIDATION_ERROR, exc.messages)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
        errors: dict[str, list[str]] = {}
        for entry in exc.errors():
            field = ".".join(str(part) for part in entry["loc"] if part not in ("body", "header", "path", "query"))
            errors.setdefault(field or "request", []).append(entry["msg"])
        return _error(422, ErrorCode.VALIDATION_ERROR, errors)

    @app.exception_handler(ObjectNotFoundError)
    async def not_found_handler(request: Request, exc: ObjectNotFoundError) -> JSONResponse:
        return _error(404, ErrorCode.NOT_FOUND, str(exc))

    @app.exception_handler(InvalidStateError)
    async def invalid_state_handler(request: Request, exc: InvalidStateError) -> JSONResponse:
        return _error(409, ErrorCode.INVALID_STATE, str(exc))

    @app.exception_handler(ExpectedVersionError)
    async def concurrency_conflict_handler(request: Request, exc: ExpectedVersionError) -> JSONResponse:
        logger.info("Concurrent modification rejected", path=request.url.path, error=str(exc))
        return _error(409, ErrorCode.CONCURRENCY_CONFLICT, str(exc))

    @app.exception_handler(ForbiddenTransitionError)
    async def forbidden_handler(request: Request, exc: ForbiddenTransitionError) -> JSONResponse:
        return _error(403, ErrorCode.FORBIDDEN_TRANSITION, str(exc))

    @app.exception_handler(InvalidOperationError)
    async def invalid_operation_handler(request: Request, exc: InvalidOperationError) -> JSONResponse:
        return _error(422, ErrorCode.VALIDATION_ERROR, str(exc))
