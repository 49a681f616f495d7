from typing import Annotated

from fastapi import APIRouter, Depends, Query, status

from src.application.services.tenant_registry import TenantRegistry
from src.presentation.api.dependencies import (
    get_tenant_registry,
    get_tenant_registry_transactional,
)
from src.presentation.api.v1.schemas.tenant import (
    TenantCreate,
    TenantResponse,
    TenantStatusUpdate,
)

router = APIRouter()


@router.post("/", response_model=TenantResponse, status_code=status.HTTP_201_CREATED)
async def create_tenant(
    data: TenantCreate,
    registry: Annotated[TenantRegistry, Depends(get_tenant_registry_transactional)],
):
    """
    Register a new tenant.

    Uses the unique constraint on code for race-free uniqueness checking.
    """
    tenant = await registry.register_tenant(code=data.code, name=data.name)
    return TenantResponse.from_entity(tenant)


@router.get("/{tenant_id}", response_model=TenantResponse)
async def get_tenant(
    tenant_id: str, registry: Annotated[TenantRegistry, Depends(get_tenant_registry)]
):
    """Get a tenant by ID"""
    return TenantResponse.from_entity(await registry.get_tenant(tenant_id))


@router.get("/", response_model=list[TenantResponse])
async def list_tenants(
    registry: Annotated[TenantRegistry, Depends(get_tenant_registry)],
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
    *,
    active_only: bool = False,
):
    """List all tenants with optional filtering by status"""
    tenants = await registry.list_tenants(skip, limit, active_only=active_only)
    return [TenantResponse.from_entity(t) for t in tenants]


@router.patch("/{tenant_id}/status", response_model=TenantResponse)
async def update_tenant_status(
    tenant_id: str,
    data: TenantStatusUpdate,
    registry: Annotated[TenantRegistry, Depends(get_tenant_registry_transactional)],
):
    """
    Update tenant status (activate, suspend, archive).

    Request body: {"new_status": "active"|"suspended"|"archived"}
    """
    tenant = await registry.change_status(tenant_id, data.new_status)
    return TenantResponse.from_entity(tenant)
