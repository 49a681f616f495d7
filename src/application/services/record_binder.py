"""
Binding of downstream records to immutable schema versions.

A record is validated against, and pinned to, the version that was active
when it was created. Later publishes never touch it; only an explicit
rebind moves it to another version of the same definition.
"""

from collections.abc import Mapping
from decimal import Decimal
from typing import Any

from pydantic_core import to_jsonable_python
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.application.services.isolation_guard import (IsolationGuard,
                                                      ensure_owned)
from src.application.services.schema_validator import SchemaValidator
from src.domain.entities.bound_record import BoundRecordEntity
from src.domain.entities.schema_version import SchemaVersionEntity
from src.domain.enums import UnknownFieldPolicy, ViolationKind
from src.domain.exceptions import (RecordValidationException,
                                   ResourceNotFoundException)
from src.domain.value_objects import Violation
from src.infrastructure.cache.redis_cache import CacheService
from src.infrastructure.config.settings import get_settings
from src.infrastructure.persistence.models.bound_record import BoundRecord
from src.infrastructure.persistence.models.schema_definition import \
    SchemaDefinition
from src.infrastructure.persistence.repositories import (
    BoundRecordRepository, RowLock, SchemaDefinitionRepository,
    SchemaVersionRepository, TenantRepository)
from src.shared.telemetry.logging import get_logger
from src.shared.telemetry.tracing import add_span_attributes, traced

logger = get_logger(__name__)

RECORD = "BoundRecord"
DEFINITION = "SchemaDefinition"
VERSION = "SchemaVersion"


class RecordBinder:
    """Creates, validates and rebinds records against schema versions"""

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
        self.validator = validator or SchemaValidator(get_settings().unknown_field_policy)
        self.max_value_depth = get_settings().max_value_depth

    @classmethod
    def for_session(
        cls, db: AsyncSession, cache_service: CacheService | None = None
    ) -> "RecordBinder":
        """Wire a binder whose repositories share one session"""
        return cls(
            guard=IsolationGuard(TenantRepository(db)),
            definition_repo=SchemaDefinitionRepository(db),
            version_repo=SchemaVersionRepository(db, cache_service=cache_service),
            record_repo=BoundRecordRepository(db),
        )

    @traced("record_binder.create_record")
    async def create_record(
        self,
        tenant_id: str,
        definition_id: str,
        field_values: Any,
        policy: UnknownFieldPolicy | None = None,
    ) -> BoundRecordEntity:
        """
        Validate values against the active version and bind a new record to it.

        The active version is resolved once, under a shared lock on the
        definition row, so a concurrent delete waits for this bind.

        Raises:
            ResourceNotFoundException: definition missing, foreign or never published
            RecordValidationException: values do not satisfy the active version
        """
        await self.guard.require_tenant(tenant_id, write=True)
        definition = await self.definition_repo.get_for_tenant(
            tenant_id, definition_id, lock=RowLock.SHARE
        )
        if definition is None:
            raise ResourceNotFoundException(DEFINITION, definition_id)

        version = await self._active_version(definition)
        self._validate(version, field_values, policy)

        try:
            row = await self.record_repo.create_record(
                tenant_id=tenant_id,
                definition_id=definition_id,
                schema_version_id=version.id,
                version=version.version,
                field_values=normalise_values(field_values),
            )
        except IntegrityError as e:
            # Definition removed between the lookup and the insert
            raise ResourceNotFoundException(DEFINITION, definition_id) from e

        add_span_attributes(version=version.version)
        logger.info(
            "Bound record %s to schema definition %s version %d",
            row.id,
            definition_id,
            version.version,
        )
        return row.to_entity()

    @traced("record_binder.update_record_values")
    async def update_record_values(
        self,
        tenant_id: str,
        record_id: str,
        new_values: Any,
        policy: UnknownFieldPolicy | None = None,
    ) -> BoundRecordEntity:
        """
        Replace a record's values, validated against its own bound version.

        Raises:
            ResourceNotFoundException: record missing or foreign
            RecordValidationException: values do not satisfy the bound version
        """
        await self.guard.require_tenant(tenant_id, write=True)
        record = await self._load_record(tenant_id, record_id, lock=RowLock.EXCLUSIVE)
        version = await self._bound_version(record)
        self._validate(version, new_values, policy)

        record.field_values = normalise_values(new_values)
        record = await self.record_repo.update(record)
        logger.info("Updated values of record %s (version %d)", record_id, record.version)
        return record.to_entity()

    async def get_record(self, tenant_id: str, record_id: str) -> BoundRecordEntity:
        await self.guard.require_tenant(tenant_id)
        return (await self._load_record(tenant_id, record_id)).to_entity()

    async def get_record_with_version(
        self, tenant_id: str, record_id: str
    ) -> tuple[BoundRecordEntity, SchemaVersionEntity]:
        """Record together with the exact version it is bound to"""
        await self.guard.require_tenant(tenant_id)
        record = await self._load_record(tenant_id, record_id)
        version = await self._bound_version(record)
        return record.to_entity(), version

    async def list_records(
        self,
        tenant_id: str,
        definition_id: str | None = None,
        skip: int = 0,
        limit: int = 100,
    ) -> list[BoundRecordEntity]:
        await self.guard.require_tenant(tenant_id)
        rows = await self.record_repo.list_for_tenant(tenant_id, definition_id, skip, limit)
        return [row.to_entity() for row in rows]

    @traced("record_binder.rebind_record")
    async def rebind_record(
        self,
        tenant_id: str,
        record_id: str,
        target_version_number: int,
        policy: UnknownFieldPolicy | None = None,
    ) -> BoundRecordEntity:
        """
        Move a record to another version of its definition.

        The record's current values must satisfy the target version.

        Raises:
            ResourceNotFoundException: record or target version missing
            RecordValidationException: values do not satisfy the target version
        """
        await self.guard.require_tenant(tenant_id, write=True)
        record = await self._load_record(tenant_id, record_id, lock=RowLock.EXCLUSIVE)
        definition = await self._record_definition(record)

        target = await self.version_repo.get_snapshot(
            tenant_id,
            record.definition_id,
            target_version_number,
            active_version=definition.current_version,
        )
        if target is None:
            raise ResourceNotFoundException(
                VERSION, f"{record.definition_id}/versions/{target_version_number}"
            )
        ensure_owned(tenant_id, target, VERSION, target.id)
        self._validate(target, record.field_values, policy)

        previous = record.version
        record.schema_version_id = target.id
        record.version = target.version
        record = await self.record_repo.update(record)
        logger.info(
            "Rebound record %s from version %d to version %d", record_id, previous, target.version
        )
        return record.to_entity()

    @traced("record_binder.delete_record")
    async def delete_record(self, tenant_id: str, record_id: str) -> None:
        """Delete a record; its schema version is left untouched"""
        await self.guard.require_tenant(tenant_id, write=True)
        record = await self._load_record(tenant_id, record_id, lock=RowLock.EXCLUSIVE)
        await self.record_repo.delete(record)
        logger.info("Deleted record %s for tenant %s", record_id, tenant_id)

    async def _load_record(
        self, tenant_id: str, record_id: str, *, lock: RowLock | None = None
    ) -> BoundRecord:
        record = await self.record_repo.get_for_tenant(tenant_id, record_id, lock=lock)
        if record is None:
            raise ResourceNotFoundException(RECORD, record_id)
        return record

    async def _record_definition(self, record: BoundRecord) -> SchemaDefinition:
        definition = await self.definition_repo.get_for_tenant(record.tenant_id, record.definition_id)
        if definition is None:
            raise ResourceNotFoundException(DEFINITION, record.definition_id)
        return definition

    async def _bound_version(self, record: BoundRecord) -> SchemaVersionEntity:
        definition = await self._record_definition(record)
        version = await self.version_repo.get_snapshot(
            record.tenant_id,
            record.definition_id,
            record.version,
            active_version=definition.current_version,
        )
        if version is None or version.id != record.schema_version_id:
            raise ResourceNotFoundException(VERSION, record.schema_version_id)
        ensure_owned(record.tenant_id, version, VERSION, version.id)
        return version

    async def _active_version(self, definition: SchemaDefinition) -> SchemaVersionEntity:
        missing = f"{definition.id}/versions/active"
        if definition.current_version == 0:
            raise ResourceNotFoundException(VERSION, missing)
        version = await self.version_repo.get_snapshot(
            definition.tenant_id,
            definition.id,
            definition.current_version,
            active_version=definition.current_version,
        )
        if version is None:
            raise ResourceNotFoundException(VERSION, missing)
        return version

    def _validate(
        self, version: SchemaVersionEntity, values: Any, policy: UnknownFieldPolicy | None
    ) -> None:
        if isinstance(values, Mapping):
            too_deep = [
                Violation(str(key), ViolationKind.TOO_DEEP)
                for key, value in values.items()
                if _nested_deeper_than(value, self.max_value_depth)
            ]
            if too_deep:
                logger.info(
                    "Values rejected for schema definition %s: %d value(s) nested too deeply",
                    version.definition_id,
                    len(too_deep),
                )
                raise RecordValidationException(too_deep)

        result = self.validator.validate(version, values, policy)
        if not result.is_valid:
            logger.info(
                "Values rejected by schema definition %s version %d: %d violation(s)",
                version.definition_id,
                version.version,
                len(result.violations),
            )
            raise RecordValidationException(result.violations, result.warnings)
        if result.warnings:
            logger.info(
                "Values accepted by schema definition %s version %d with %d unknown field(s)",
                version.definition_id,
                version.version,
                len(result.warnings),
            )


def normalise_values(values: Any) -> dict[str, Any]:
    """
    Convert validated values to JSON-compatible data for storage.

    Dates become ISO strings and Decimals become plain numbers, so stored
    values validate the same way when they are checked again on rebind.
    """
    return to_jsonable_python(_plain_numbers(values))


def _plain_numbers(value: Any) -> Any:
    if isinstance(value, Decimal):
        return int(value) if value == value.to_integral_value() else float(value)
    if isinstance(value, Mapping):
        return {key: _plain_numbers(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain_numbers(item) for item in value]
    return value


def _nested_deeper_than(value: Any, limit: int) -> bool:
    """True when lists and mappings inside value nest more than limit levels"""
    pending = [(value, 1)]
    while pending:
        node, depth = pending.pop()
        if isinstance(node, Mapping):
            children = node.values()
        elif isinstance(node, (list, tuple)):
            children = node
        else:
            continue
        if depth > limit:
            return True
        pending.extend((child, depth + 1) for child in children)
    return False
