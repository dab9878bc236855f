"""The metadata stored in a relation's ``comment`` field.

A relation carries no notion of which picker owns it, so every relation
written by the engine embeds that identity as a single XML element::

    <RelationMapping PropertyAlias="tags" PropertyTypeId="12"
                     DataTypeDefinitionId="4" ParentSortOrder="-1"
                     ChildSortOrder="3" />

``PropertyAlias`` and the two sort orders were added after the first
release, so older comments may lack them.  Parsing never raises: a missing
sort order reads as ``-1``, a missing alias as ``""`` and anything else that
cannot be read yields a comment with every field empty.
"""

from __future__ import annotations

import sqlite3
import xml.etree.ElementTree as ET
from dataclasses import dataclass
from typing import Optional

from relmap.config import settings
from relmap.db.entities import get_entity, get_property_type
from relmap.errors import PropertyTypeNotFoundError

UNSET = -1

_ROOT_TAG = "RelationMapping"


@dataclass
class RelationMappingComment:
    property_alias: str = ""
    property_type_id: int = UNSET
    data_type_definition_id: int = UNSET
    parent_sort_order: int = UNSET
    child_sort_order: int = UNSET

    @classmethod
    def parse(cls, comment: Optional[str]) -> RelationMappingComment:
        """Decode a stored comment, falling back to empty values."""
        if not comment or not comment.strip():
            return cls()
        try:
            element = ET.fromstring(comment)
            attrs = element.attrib
            return cls(
                property_alias=attrs.get("PropertyAlias", ""),
                property_type_id=int(attrs["PropertyTypeId"]),
                data_type_definition_id=int(attrs["DataTypeDefinitionId"]),
                parent_sort_order=int(attrs.get("ParentSortOrder", UNSET)),
                child_sort_order=int(attrs.get("ChildSortOrder", UNSET)),
            )
        except (ET.ParseError, KeyError, ValueError):
            return cls()

    def to_comment(self) -> str:
        """Encode every field, sentinels included."""
        element = ET.Element(
            _ROOT_TAG,
            {
                "PropertyAlias": self.property_alias,
                "PropertyTypeId": str(self.property_type_id),
                "DataTypeDefinitionId": str(self.data_type_definition_id),
                "ParentSortOrder": str(self.parent_sort_order),
                "ChildSortOrder": str(self.child_sort_order),
            },
        )
        return ET.tostring(element, encoding="unicode")

    # ------------------------------------------------------------------
    # Nested property groups
    # ------------------------------------------------------------------
    def is_in_archetype(self) -> bool:
        """True when the property lives inside a repeating property group."""
        return self.property_alias.startswith(settings.archetype_alias_prefix)

    def matches_archetype_property(self, property_alias: str) -> bool:
        """Compare the group-instance segment of both aliases.

        An alias that cannot be split far enough never matches.
        """
        delimiter = settings.archetype_alias_delimiter
        index = settings.archetype_segment_index
        try:
            return self.property_alias.split(delimiter)[index] == property_alias.split(delimiter)[index]
        except IndexError:
            return False


def resolve_property_comment(
    conn: sqlite3.Connection, context_id: int, property_alias: str
) -> RelationMappingComment:
    """Build the identity part of a comment for a property on *context_id*.

    Sort orders are left unset.

    Raises:
        PropertyTypeNotFoundError: If the entity or its property type is missing.
    """
    entity = get_entity(conn, context_id)
    property_type = get_property_type(conn, entity.entity_type, property_alias) if entity else None
    if property_type is None:
        raise PropertyTypeNotFoundError(context_id, property_alias)

    return RelationMappingComment(
        property_alias=property_alias,
        property_type_id=property_type.id,
        data_type_definition_id=property_type.data_type_id,
    )
