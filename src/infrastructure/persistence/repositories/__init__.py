""" Repository module for the persistence layer. """

from src.infrastructure.persistence.repositories.base import (
    BaseRepository, RowLock, TenantScopedRepository)
from src.infrastructure.persistence.repositories.bound_record_repo import \
    BoundRecordRepository
from src.infrastructure.persistence.repositories.schema_definition_repo import \
    SchemaDefinitionRepository
from src.infrastructure.persistence.repositories.schema_version_repo import \
    SchemaVersionRepository
from src.infrastructure.persistence.repositories.tenant_repo import \
    TenantRepository

__all__ = [
    "BaseRepository",
    "BoundRecordRepository",
    "RowLock",
    "SchemaDefinitionRepository",
    "SchemaVersionRepository",
    "TenantRepository",
    "TenantScopedRepository",
]
