"""Exception handlers translating domain errors to JSON responses with request_id."""

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.domain.exceptions import (ConcurrentModificationException,
                                   DuplicateNameException, FormvaultException,
                                   InvalidStateTransitionException,
                                   InvalidValueException,
                                   MalformedSchemaException,
                                   RecordValidationException,
                                   ResourceInUseException,
                                   ResourceNotFoundException,
                                   TenantInactiveException,
                                   TenantNotFoundException)
from src.shared.context import get_correlation_id
from src.shared.telemetry.logging import get_logger

logger = get_logger(__name__)

# Checked in order; CrossTenantAccessException matches ResourceNotFoundException
STATUS_CODES: tuple[tuple[type[FormvaultException], int], ...] = (
    (ResourceNotFoundException, status.HTTP_404_NOT_FOUND),
    (TenantNotFoundException, status.HTTP_404_NOT_FOUND),
    (TenantInactiveException, status.HTTP_403_FORBIDDEN),
    (DuplicateNameException, status.HTTP_409_CONFLICT),
    (ConcurrentModificationException, status.HTTP_409_CONFLICT),
    (ResourceInUseException, status.HTTP_409_CONFLICT),
    (InvalidStateTransitionException, status.HTTP_409_CONFLICT),
    (RecordValidationException, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (MalformedSchemaException, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidValueException, status.HTTP_422_UNPROCESSABLE_ENTITY),
)


def status_code_for(exc: FormvaultException) -> int:
    for exc_type, code in STATUS_CODES:
        if isinstance(exc, exc_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def setup_exception_handlers(app: FastAPI) -> None:
    """Configure exception handlers that include request_id in responses."""

    @app.exception_handler(FormvaultException)
    async def formvault_exception_handler(
        request: Request, exc: FormvaultException
    ) -> JSONResponse:
        body = exc.to_dict()
        body["request_id"] = get_correlation_id()
        headers = {"Retry-After": "0"} if exc.retryable else None
        return JSONResponse(status_code=status_code_for(exc), content=body, headers=headers)

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        request_id = get_correlation_id()
        logger.exception("Unhandled exception on %s", request.url.path, exc_info=exc)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "error": "INTERNAL_ERROR",
                "message": "Internal server error",
                "details": {},
                "request_id": request_id,
            },
        )
