"""Utility functions and decorators for distributed tracing"""
import asyncio
import logging
from collections.abc import Callable
from functools import wraps

from opentelemetry import trace
from opentelemetry.trace import Status, StatusCode

logger = logging.getLogger(__name__)

# Keyword arguments never copied onto spans
_REDACTED_ARGS = frozenset({"values", "candidate", "fields", "raw_fields"})


def _set_arg_attributes(span, kwargs: dict) -> None:
    for key, value in kwargs.items():
        if key.startswith("_") or key in _REDACTED_ARGS:
            continue
        if isinstance(value, (str, int, float, bool)):
            span.set_attribute(f"arg.{key}", value)


def traced(operation_name: str | None = None, attributes=None):
    """
    Decorator to create a span for a function

    Usage:
        @traced("version_manager.publish_version")
        async def publish_version(self, tenant_id: str, ...):
            pass

        @traced(attributes={"formvault.component": "validator"})
        def validate(self, version, candidate):
            pass

    Record payloads and field structures are never attached to spans; only
    scalar keyword arguments such as ids and version numbers are.

    Args:
        operation_name: Name of the operation (defaults to function name)
        attributes: Additional attributes to add to the span
    """

    def decorator(func: Callable) -> Callable:
        span_name = operation_name or f"{func.__module__}.{func.__name__}"

        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            tracer = trace.get_tracer(__name__)
            with tracer.start_as_current_span(span_name) as span:
                if attributes:
                    for key, value in attributes.items():
                        span.set_attribute(key, value)
                _set_arg_attributes(span, kwargs)

                try:
                    result = await func(*args, **kwargs)
                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise

        @wraps(func)
        def sync_wrapper(*args, **kwargs):
            tracer = trace.get_tracer(__name__)
            with tracer.start_as_current_span(span_name) as span:
                if attributes:
                    for key, value in attributes.items():
                        span.set_attribute(key, value)
                _set_arg_attributes(span, kwargs)

                try:
                    result = func(*args, **kwargs)
                    span.set_status(Status(StatusCode.OK))
                    return result
                except Exception as e:
                    span.set_status(Status(StatusCode.ERROR, str(e)))
                    span.record_exception(e)
                    raise

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator


def add_span_attributes(**attributes):
    """
    Add attributes to the current span

    Usage:
        add_span_attributes(tenant_id="tenant-456", version=3)
    """
    span = trace.get_current_span()
    if span:
        for key, value in attributes.items():
            span.set_attribute(key, value)


def add_span_event(name: str, attributes: dict | None = None):
    """
    Add an event to the current span

    Usage:
        add_span_event("publish_conflict", {"attempt": 2})
    """
    span = trace.get_current_span()
    if span:
        span.add_event(name, attributes=attributes or {})
