"""Dataclass models representing DB rows.

These are plain Python objects – not ORM models.  The DB layer serialises /
deserialises to and from these types.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from typing import Any, Optional

CONTENT = "content"
MEDIA = "media"
MEMBER = "member"
OBJECT_KINDS = (CONTENT, MEDIA, MEMBER)


@dataclass
class DataType:
    id: int
    editor_alias: str
    config: dict[str, Any]


@dataclass
class PropertyType:
    id: int
    entity_type: str
    alias: str
    data_type_id: int
    editor_alias: str


@dataclass
class Entity:
    """A content, media or member item as seen by the save lifecycle.

    ``id`` stays ``None`` until the host persists a new entity; ``key`` is
    assigned at construction and never changes.
    """

    kind: str
    entity_type: str
    parent_id: Optional[int] = None
    properties: dict[str, Any] = field(default_factory=dict)
    id: Optional[int] = None
    key: str = field(default_factory=lambda: str(uuid.uuid4()))
    dirty_properties: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        if self.kind not in OBJECT_KINDS:
            raise ValueError(f"Unknown entity kind {self.kind!r}")

    def get_value(self, alias: str) -> Any:
        return self.properties.get(alias)

    def set_value(self, alias: str, value: Any) -> None:
        self.properties[alias] = value
        self.dirty_properties.add(alias)

    def is_dirty(self) -> bool:
        return self.id is None or bool(self.dirty_properties)

    def reset_dirty(self) -> None:
        self.dirty_properties.clear()

    # ------------------------------------------------------------------
    # Convenience helpers
    # ------------------------------------------------------------------
    def properties_json(self) -> str:
        """Serialise the property values to a JSON string for storage."""
        return json.dumps(self.properties)


@dataclass
class RelationType:
    id: int
    alias: str
    name: str
    is_bidirectional: bool
    parent_object_type: str
    child_object_type: str


@dataclass
class Relation:
    parent_id: int
    child_id: int
    relation_type_id: int
    comment: str = ""
    id: Optional[int] = None
    created_at: Optional[int] = None
