"""
Request context management using contextvars.

Provides async-safe storage for request-scoped data used by logging:
the correlation id and the caller's tenant id. Business code never reads
the tenant from here; services take it as an explicit argument.

Usage:
    # In middleware:
    set_request_context(correlation_id="abc", tenant_id="tenant-1")

    # In the logging filter:
    ctx = get_request_context()
"""

from contextvars import ContextVar
from dataclasses import dataclass

_correlation_id: ContextVar[str | None] = ContextVar("correlation_id", default=None)
_tenant_id: ContextVar[str | None] = ContextVar("tenant_id", default=None)


@dataclass(frozen=True)
class RequestContext:
    """Immutable snapshot of the current request context."""

    correlation_id: str | None
    tenant_id: str | None


def set_request_context(correlation_id: str | None, tenant_id: str | None = None) -> None:
    """
    Set the request context for this task.

    The context is automatically scoped to the current async task.
    """
    _correlation_id.set(correlation_id)
    _tenant_id.set(tenant_id)


def get_request_context() -> RequestContext:
    return RequestContext(correlation_id=_correlation_id.get(), tenant_id=_tenant_id.get())


def get_correlation_id() -> str | None:
    """Get the correlation ID for the current request"""
    return _correlation_id.get()


def clear_request_context() -> None:
    _correlation_id.set(None)
    _tenant_id.set(None)
