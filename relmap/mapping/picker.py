"""Picker properties and the per-save snapshot taken of them."""

from __future__ import annotations

import logging
import sqlite3
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

from relmap.config import settings
from relmap.db.entities import get_entity_id_by_key
from relmap.db.models import DataType

logger = logging.getLogger(__name__)


def is_picker(editor_alias: str) -> bool:
    """True when *editor_alias* names a picker property editor."""
    return editor_alias.startswith(settings.picker_editor_prefix)


@dataclass
class PickerConfig:
    relation_type_alias: str = ""
    save_format: str = "csv"

    @classmethod
    def from_data_type(cls, data_type: DataType) -> PickerConfig:
        mapping = data_type.config.get("relationMapping") or {}
        return cls(
            relation_type_alias=mapping.get("relationTypeAlias", "") or "",
            save_format=data_type.config.get("saveFormat", "csv"),
        )

    @property
    def relations_only(self) -> bool:
        return self.save_format == settings.relations_only_format


@dataclass
class Picker:
    """Snapshot of one picker property, staged between saving and saved."""

    entity_id: Optional[int]
    parent_id: Optional[int]
    property_alias: str
    data_type_id: int
    editor_alias: str
    saved_value: Any
    relation_type_alias: str = ""
    relations_only: bool = False
    picked_keys: list[str] = field(default_factory=list)

    def picked_ids(self, conn: sqlite3.Connection) -> list[int]:
        """Resolve the picked keys to entity ids.

        Integer keys are used as-is and entity keys (uuids) are looked up.
        Keys that resolve to nothing are dropped, as are repeats.
        """
        ids: list[int] = []
        for key in self.picked_keys:
            entity_id = _resolve_key(conn, key)
            if entity_id is None:
                logger.debug("Dropping unresolvable key %r on %s", key, self.property_alias)
                continue
            if entity_id not in ids:
                ids.append(entity_id)
        return ids


def _resolve_key(conn: sqlite3.Connection, key: str) -> Optional[int]:
    try:
        return int(key)
    except ValueError:
        pass
    try:
        uuid.UUID(key)
    except ValueError:
        return None
    return get_entity_id_by_key(conn, key)
