"""
BoundRecord domain entity.

A downstream record (e.g. a product listing) pinned to one schema version.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any


@dataclass(frozen=True)
class BoundRecordEntity:
    """
    Domain entity for BoundRecord.

    The (definition_id, version) pair is the record's contract with the
    world. It only changes through an explicit rebind.
    """

    id: str
    tenant_id: str
    definition_id: str
    schema_version_id: str
    version: int
    values: dict[str, Any] = field(default_factory=dict)
    created_at: datetime | None = None
    updated_at: datetime | None = None

    def is_bound_to(self, definition_id: str, version: int) -> bool:
        return self.definition_id == definition_id and self.version == version
