"""
Schema definition lifecycle and immutable version history.

Every operation runs inside the caller's transaction. The definition row is
the only contended state: publishes serialise on a compare-and-swap of its
current_version, deletes on a row lock plus a swap of its lock_version.
"""

import inspect
from collections.abc import Awaitable, Callable
from dataclasses import replace
from typing import Any

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from src.application.services.field_structure import coerce_fields
from src.application.services.isolation_guard import (IsolationGuard,
                                                      ensure_owned)
from src.application.services.schema_validator import SchemaValidator
from src.domain.entities.field_spec import fields_to_dicts
from src.domain.entities.schema_version import (SchemaDefinitionEntity,
                                                SchemaVersionEntity)
from src.domain.enums import UnknownFieldPolicy
from src.domain.exceptions import (ConcurrentModificationException,
                                   DuplicateNameException,
                                   InvalidValueException,
                                   ResourceInUseException,
                                   ResourceNotFoundException)
from src.domain.value_objects import DefinitionName, ValidationResult
from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.models.schema_definition import \
    SchemaDefinition
from src.infrastructure.persistence.models.schema_version import SchemaVersion
from src.infrastructure.persistence.repositories import (
    BoundRecordRepository, RowLock, SchemaDefinitionRepository,
    SchemaVersionRepository, TenantRepository)
from src.shared.telemetry.logging import get_logger
from src.shared.telemetry.tracing import (add_span_attributes, add_span_event,
                                           traced)

logger = get_logger(__name__)

DEFINITION = "SchemaDefinition"
VERSION = "SchemaVersion"


class VersionManager:
    """Creates definitions, publishes versions and serves version history"""

    def __init__(
        self,
        guard: IsolationGuard,
        definition_repo: SchemaDefinitionRepository,
        version_repo: SchemaVersionRepository,
        record_repo: BoundRecordRepository,
        validator: SchemaValidator | None = None,
    ) -> None:
        self.guard = guard
        self.definition_repo = definition_repo
        self.version_repo = version_repo
        self.record_repo = record_repo
        self.settings = get_settings()
        self.validator = validator or SchemaValidator(self.settings.unknown_field_policy)

    @classmethod
    def for_session(
        cls, db: AsyncSession, cache_service: CacheService | None = None
    ) -> "VersionManager":
        """Wire a manager whose repositories share one session"""
        return cls(
            guard=IsolationGuard(TenantRepository(db)),
            definition_repo=SchemaDefinitionRepository(db),
            version_repo=SchemaVersionRepository(db, cache_service=cache_service),
            record_repo=BoundRecordRepository(db),
        )

    @traced("version_manager.create_definition")
    async def create_definition(self, tenant_id: str, name: str) -> SchemaDefinitionEntity:
        """
        Create an empty definition (current version 0).

        Raises:
            DuplicateNameException: the tenant already owns a definition with this name
        """
        await self.guard.require_tenant(tenant_id, write=True)
        try:
            definition_name = DefinitionName(name)
        except ValueError as e:
            raise InvalidValueException("definition name", str(e)) from e

        if await self.definition_repo.get_by_name(tenant_id, definition_name.value) is not None:
            raise DuplicateNameException(DEFINITION, definition_name.value)

        try:
            row = await self.definition_repo.create(
                SchemaDefinition(tenant_id=tenant_id, name=definition_name.value, current_version=0)
            )
        except IntegrityError as e:
            raise DuplicateNameException(DEFINITION, definition_name.value) from e

        logger.info("Created schema definition %s '%s' for tenant %s", row.id, row.name, tenant_id)
        return row.to_entity()

    async def get_definition(self, tenant_id: str, definition_id: str) -> SchemaDefinitionEntity:
        await self.guard.require_tenant(tenant_id)
        return (await self.load_definition(tenant_id, definition_id)).to_entity()

    async def list_definitions(
        self, tenant_id: str, skip: int = 0, limit: int = 100
    ) -> list[SchemaDefinitionEntity]:
        await self.guard.require_tenant(tenant_id)
        rows = await self.definition_repo.list_for_tenant(tenant_id, skip, limit)
        return [row.to_entity() for row in rows]

    @traced("version_manager.publish_version")
    async def publish_version(
        self,
        tenant_id: str,
        definition_id: str,
        fields: Any,
        expected_version: int,
    ) -> SchemaVersionEntity:
        """
        Publish a new active version.

        expected_version is the version number the caller last saw (0 for the
        first publish). The new version gets expected_version + 1.

        Raises:
            ResourceNotFoundException: no such definition for this tenant
            MalformedSchemaException: the field structure is not well-formed
            ConcurrentModificationException: another publish moved the pointer first
        """
        await self.guard.require_tenant(tenant_id, write=True)
        definition = await self.load_definition(tenant_id, definition_id)
        specs = coerce_fields(fields, max_depth=self.settings.max_nesting_depth)

        if definition.current_version != expected_version:
            self._log_conflict(definition_id, expected_version, definition.current_version)
            raise ConcurrentModificationException(
                DEFINITION, definition_id, expected_version, definition.current_version
            )

        if not await self.definition_repo.advance_version(tenant_id, definition_id, expected_version):
            self._log_conflict(definition_id, expected_version, None)
            raise ConcurrentModificationException(DEFINITION, definition_id, expected_version)

        new_version = expected_version + 1
        await self.version_repo.deactivate_all(tenant_id, definition_id)
        try:
            row = await self.version_repo.create(
                SchemaVersion(
                    tenant_id=tenant_id,
                    definition_id=definition_id,
                    version=new_version,
                    fields=fields_to_dicts(specs),
                    is_active=True,
                )
            )
        except IntegrityError as e:
            self._log_conflict(definition_id, expected_version, None)
            raise ConcurrentModificationException(DEFINITION, definition_id, expected_version) from e

        add_span_attributes(version=new_version)
        logger.info(
            "Published schema definition %s version %d for tenant %s",
            definition_id,
            new_version,
            tenant_id,
        )
        return row.to_entity()

    async def get_active_version(self, tenant_id: str, definition_id: str) -> SchemaVersionEntity:
        """
        Raises:
            ResourceNotFoundException: definition missing or never published
        """
        await self.guard.require_tenant(tenant_id)
        definition = await self.load_definition(tenant_id, definition_id)
        return await self.resolve_active(definition)

    async def get_version(
        self, tenant_id: str, definition_id: str, version_number: int
    ) -> SchemaVersionEntity:
        await self.guard.require_tenant(tenant_id)
        definition = await self.load_definition(tenant_id, definition_id)
        snapshot = await self.version_repo.get_snapshot(
            tenant_id, definition_id, version_number, active_version=definition.current_version
        )
        if snapshot is None:
            raise ResourceNotFoundException(VERSION, _version_ref(definition_id, version_number))
        ensure_owned(tenant_id, snapshot, VERSION, _version_ref(definition_id, version_number))
        return snapshot

    async def list_versions(self, tenant_id: str, definition_id: str) -> list[SchemaVersionEntity]:
        """Full history, oldest first"""
        await self.guard.require_tenant(tenant_id)
        definition = await self.load_definition(tenant_id, definition_id)
        rows = await self.version_repo.list_for_definition(tenant_id, definition_id)
        return [
            replace(row.to_entity(), is_active=row.version == definition.current_version)
            for row in rows
        ]

    async def validate_against_active(
        self,
        tenant_id: str,
        definition_id: str,
        values: Any,
        policy: UnknownFieldPolicy | None = None,
    ) -> ValidationResult:
        """Dry-run validation against the active version; nothing is stored"""
        version = await self.get_active_version(tenant_id, definition_id)
        return self.validator.validate(version, values, policy)

    @traced("version_manager.delete_definition")
    async def delete_definition(self, tenant_id: str, definition_id: str) -> None:
        """
        Delete a definition with its whole version history.

        Raises:
            ResourceNotFoundException: no such definition for this tenant
            ResourceInUseException: some record still references one of its versions
            ConcurrentModificationException: the definition changed while deleting
        """
        await self.guard.require_tenant(tenant_id, write=True)
        definition = await self.definition_repo.get_for_tenant(
            tenant_id, definition_id, lock=RowLock.EXCLUSIVE
        )
        if definition is None:
            raise ResourceNotFoundException(DEFINITION, definition_id)

        if not await self.definition_repo.claim(tenant_id, definition_id, definition.lock_version):
            self._log_conflict(definition_id, definition.lock_version, None)
            raise ConcurrentModificationException(DEFINITION, definition_id, definition.lock_version)

        references = await self.record_repo.count_for_definition(definition_id)
        if references:
            logger.warning(
                "Delete of schema definition %s blocked by %d record(s)", definition_id, references
            )
            raise ResourceInUseException(DEFINITION, definition_id, references)

        try:
            removed = await self.version_repo.delete_for_definition(tenant_id, definition_id)
            await self.definition_repo.delete_for_tenant(tenant_id, definition_id)
        except IntegrityError as e:
            # A record slipped in past the count; the foreign key caught it
            raise ResourceInUseException(DEFINITION, definition_id, 1) from e

        await self.version_repo.invalidate_definition(tenant_id, definition_id)
        logger.info(
            "Deleted schema definition %s (%d version(s)) for tenant %s",
            definition_id,
            removed,
            tenant_id,
        )

    async def resolve_active(self, definition: SchemaDefinition) -> SchemaVersionEntity:
        """Active version of an already loaded definition"""
        if definition.current_version == 0:
            raise ResourceNotFoundException(VERSION, _version_ref(definition.id, "active"))
        snapshot = await self.version_repo.get_snapshot(
            definition.tenant_id,
            definition.id,
            definition.current_version,
            active_version=definition.current_version,
        )
        if snapshot is None:
            raise ResourceNotFoundException(VERSION, _version_ref(definition.id, "active"))
        return snapshot

    async def load_definition(self, tenant_id: str, definition_id: str) -> SchemaDefinition:
        definition = await self.definition_repo.get_for_tenant(tenant_id, definition_id)
        if definition is None:
            raise ResourceNotFoundException(DEFINITION, definition_id)
        return definition

    @staticmethod
    def _log_conflict(definition_id: str, expected: int, actual: int | None) -> None:
        logger.warning(
            "Concurrent modification of schema definition %s (expected %d, found %s)",
            definition_id,
            expected,
            "unknown" if actual is None else actual,
        )
        add_span_event("concurrent_modification", {"definition_id": definition_id})


async def publish_with_retry(
    session_factory: async_sessionmaker[AsyncSession],
    tenant_id: str,
    definition_id: str,
    build_fields: Callable[[SchemaVersionEntity | None], Any | Awaitable[Any]],
    *,
    cache_service: CacheService | None = None,
    max_attempts: int | None = None,
) -> SchemaVersionEntity:
    """
    Publish with a fresh read and a fresh transaction per attempt.

    build_fields receives the currently active version (None before the
    first publish) and returns the new field structure. Only
    ConcurrentModificationException is retried; after max_attempts the last
    one propagates.
    """
    attempts = max_attempts or get_settings().publish_max_attempts
    attempt = 0
    while True:
        attempt += 1
        try:
            async with session_factory() as session, session.begin():
                manager = VersionManager.for_session(session, cache_service)
                await manager.guard.require_tenant(tenant_id, write=True)
                definition = await manager.load_definition(tenant_id, definition_id)
                current = (
                    await manager.resolve_active(definition) if definition.current_version else None
                )
                fields = build_fields(current)
                if inspect.isawaitable(fields):
                    fields = await fields
                return await manager.publish_version(
                    tenant_id, definition_id, fields, definition.current_version
                )
        except ConcurrentModificationException:
            logger.warning(
                "Publish attempt %d/%d for schema definition %s lost a race",
                attempt,
                attempts,
                definition_id,
            )
            if attempt >= attempts:
                raise


def _version_ref(definition_id: str, version: Any) -> str:
    return f"{definition_id}/versions/{version}"

