"""Correlation ID middleware for request tracing"""
import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from src.infrastructure.config.settings import get_settings
from src.shared.context import clear_request_context, set_request_context

CORRELATION_HEADER = "X-Correlation-ID"


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Add correlation IDs to all requests for distributed tracing.

    Features:
    - Accepts X-Correlation-ID header from clients, generates one otherwise
    - Adds correlation ID to response headers
    - Makes correlation ID and tenant header available to the logging filter
    """

    async def dispatch(self, request: Request, call_next):
        correlation_id = request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())
        tenant_id = request.headers.get(get_settings().tenant_header_name)

        set_request_context(correlation_id, tenant_id)
        try:
            response = await call_next(request)
        finally:
            clear_request_context()

        response.headers[CORRELATION_HEADER] = correlation_id
        return response
