from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status

from src.application.services.record_binder import RecordBinder
from src.infrastructure.config.settings import get_settings
from src.presentation.api.dependencies import (
    get_record_binder,
    get_record_binder_transactional,
    get_tenant_id,
)
from src.presentation.api.v1.schemas.record import (
    RecordCreate,
    RecordRebind,
    RecordResponse,
    RecordValuesUpdate,
    RecordWithVersionResponse,
)
from src.presentation.api.v1.schemas.schema_definition import SchemaVersionResponse
from src.presentation.middleware.rate_limit import limiter

router = APIRouter()
settings = get_settings()


@router.post("/", response_model=RecordResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit_writes)
async def create_record(
    request: Request,
    data: RecordCreate,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    binder: Annotated[RecordBinder, Depends(get_record_binder_transactional)],
):
    """
    Bind a new record to the definition's active version.

    Returns 422 with every violation when the values do not fit.
    """
    record = await binder.create_record(tenant_id, data.definition_id, data.values, data.policy)
    return RecordResponse.from_entity(record)


@router.get("/", response_model=list[RecordResponse])
async def list_records(
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    binder: Annotated[RecordBinder, Depends(get_record_binder)],
    definition_id: str | None = None,
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
):
    """List the tenant's records, newest first, optionally for one definition"""
    records = await binder.list_records(tenant_id, definition_id, skip, limit)
    return [RecordResponse.from_entity(r) for r in records]


@router.get("/{record_id}", response_model=RecordWithVersionResponse)
async def get_record(
    record_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    binder: Annotated[RecordBinder, Depends(get_record_binder)],
):
    """Get a record together with the schema version it is bound to"""
    record, version = await binder.get_record_with_version(tenant_id, record_id)
    return RecordWithVersionResponse(
        record=RecordResponse.from_entity(record),
        schema_version=SchemaVersionResponse.from_entity(version),
    )


@router.put("/{record_id}/values", response_model=RecordResponse)
@limiter.limit(settings.rate_limit_writes)
async def update_record_values(
    request: Request,
    record_id: str,
    data: RecordValuesUpdate,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    binder: Annotated[RecordBinder, Depends(get_record_binder_transactional)],
):
    """Replace a record's values; they are validated against the record's own version"""
    record = await binder.update_record_values(tenant_id, record_id, data.values, data.policy)
    return RecordResponse.from_entity(record)


@router.post("/{record_id}/rebind", response_model=RecordResponse)
@limiter.limit(settings.rate_limit_writes)
async def rebind_record(
    request: Request,
    record_id: str,
    data: RecordRebind,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    binder: Annotated[RecordBinder, Depends(get_record_binder_transactional)],
):
    """Explicitly move a record to another version of its definition"""
    record = await binder.rebind_record(tenant_id, record_id, data.target_version, data.policy)
    return RecordResponse.from_entity(record)


@router.delete("/{record_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(settings.rate_limit_writes)
async def delete_record(
    request: Request,
    record_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    binder: Annotated[RecordBinder, Depends(get_record_binder_transactional)],
):
    """Delete a record. Its schema version is kept."""
    await binder.delete_record(tenant_id, record_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
