from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, Response, status

from src.application.services.field_structure import to_json_schema
from src.application.services.version_manager import VersionManager
from src.infrastructure.config.settings import get_settings
from src.presentation.api.dependencies import (
    get_tenant_id,
    get_version_manager,
    get_version_manager_transactional,
)
from src.presentation.api.v1.schemas.schema_definition import (
    SchemaDefinitionCreate,
    SchemaDefinitionResponse,
    SchemaVersionPublish,
    SchemaVersionResponse,
    ValidateValuesRequest,
    ValidationResponse,
)
from src.presentation.middleware.rate_limit import limiter

router = APIRouter()
settings = get_settings()


@router.post("/", response_model=SchemaDefinitionResponse, status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.rate_limit_writes)
async def create_schema_definition(
    request: Request,
    data: SchemaDefinitionCreate,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    manager: Annotated[VersionManager, Depends(get_version_manager_transactional)],
):
    """Create an empty schema definition. Names are unique per tenant."""
    definition = await manager.create_definition(tenant_id, data.name)
    return SchemaDefinitionResponse.from_entity(definition)


@router.get("/", response_model=list[SchemaDefinitionResponse])
async def list_schema_definitions(
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    manager: Annotated[VersionManager, Depends(get_version_manager)],
    skip: Annotated[int, Query(ge=0)] = 0,
    limit: Annotated[int, Query(ge=1, le=500)] = 100,
):
    """List the tenant's schema definitions ordered by name"""
    definitions = await manager.list_definitions(tenant_id, skip, limit)
    return [SchemaDefinitionResponse.from_entity(d) for d in definitions]


@router.get("/{definition_id}", response_model=SchemaDefinitionResponse)
async def get_schema_definition(
    definition_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    manager: Annotated[VersionManager, Depends(get_version_manager)],
):
    """Get a schema definition with its current version number"""
    return SchemaDefinitionResponse.from_entity(
        await manager.get_definition(tenant_id, definition_id)
    )


@router.delete("/{definition_id}", status_code=status.HTTP_204_NO_CONTENT)
@limiter.limit(settings.rate_limit_writes)
async def delete_schema_definition(
    request: Request,
    definition_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    manager: Annotated[VersionManager, Depends(get_version_manager_transactional)],
):
    """
    Delete a schema definition and its version history.

    Refused with 409 while any record is bound to one of its versions.
    """
    await manager.delete_definition(tenant_id, definition_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post(
    "/{definition_id}/versions",
    response_model=SchemaVersionResponse,
    status_code=status.HTTP_201_CREATED,
)
@limiter.limit(settings.rate_limit_publish)
async def publish_schema_version(
    request: Request,
    definition_id: str,
    data: SchemaVersionPublish,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    manager: Annotated[VersionManager, Depends(get_version_manager_transactional)],
):
    """
    Publish a new active version.

    expected_version must equal the definition's current version number.
    A concurrent publish that got there first yields 409; re-read and retry.
    Records already bound to earlier versions are not affected.
    """
    version = await manager.publish_version(
        tenant_id, definition_id, data.raw_fields(), data.expected_version
    )
    return SchemaVersionResponse.from_entity(version)


@router.get("/{definition_id}/versions", response_model=list[SchemaVersionResponse])
async def list_schema_versions(
    definition_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    manager: Annotated[VersionManager, Depends(get_version_manager)],
):
    """Full version history, oldest first"""
    versions = await manager.list_versions(tenant_id, definition_id)
    return [SchemaVersionResponse.from_entity(v) for v in versions]


@router.get("/{definition_id}/versions/active", response_model=SchemaVersionResponse)
async def get_active_schema_version(
    definition_id: str,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    manager: Annotated[VersionManager, Depends(get_version_manager)],
):
    """Get the version new records are bound to"""
    return SchemaVersionResponse.from_entity(
        await manager.get_active_version(tenant_id, definition_id)
    )


@router.get("/{definition_id}/versions/{version}", response_model=SchemaVersionResponse)
async def get_schema_version(
    definition_id: str,
    version: int,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    manager: Annotated[VersionManager, Depends(get_version_manager)],
):
    """Get a specific version, active or historical"""
    return SchemaVersionResponse.from_entity(
        await manager.get_version(tenant_id, definition_id, version)
    )


@router.get("/{definition_id}/versions/{version}/json-schema")
async def get_schema_version_json_schema(
    definition_id: str,
    version: int,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    manager: Annotated[VersionManager, Depends(get_version_manager)],
) -> dict:
    """Export a version as a Draft 2020-12 JSON Schema"""
    definition = await manager.get_definition(tenant_id, definition_id)
    snapshot = await manager.get_version(tenant_id, definition_id, version)
    return to_json_schema(snapshot.fields, title=f"{definition.name} v{snapshot.version}")


@router.post("/{definition_id}/validate", response_model=ValidationResponse)
async def validate_values(
    definition_id: str,
    data: ValidateValuesRequest,
    tenant_id: Annotated[str, Depends(get_tenant_id)],
    manager: Annotated[VersionManager, Depends(get_version_manager)],
):
    """Validate values against the active version without storing anything"""
    result = await manager.validate_against_active(
        tenant_id, definition_id, data.values, data.policy
    )
    return ValidationResponse.from_result(result)
