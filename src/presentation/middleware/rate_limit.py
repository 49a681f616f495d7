"""Per-tenant rate limiting for write endpoints"""
from slowapi import Limiter
from slowapi.util import get_remote_address
from starlette.requests import Request

from src.infrastructure.config.settings import get_settings

settings = get_settings()


def tenant_or_remote_address(request: Request) -> str:
    """Limit per tenant; requests without a tenant header share the caller's IP bucket"""
    tenant_id = request.headers.get(settings.tenant_header_name)
    if tenant_id:
        return f"tenant:{tenant_id}"
    return get_remote_address(request)


limiter = Limiter(key_func=tenant_or_remote_address, enabled=settings.rate_limit_enabled)
