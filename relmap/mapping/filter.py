"""Select the relations that belong to one picker property.

Relations of a type are shared by every picker that maps onto it; the only
ownership signal is the comment metadata, so the filter re-derives the same
criteria the synchronizer writes.
"""

from __future__ import annotations

import sqlite3

from relmap.db.models import Relation, RelationType
from relmap.db.relations import get_relations_by_type
from relmap.mapping.comment import RelationMappingComment

FilteredRelation = tuple[Relation, RelationMappingComment]


def filter_relations(
    conn: sqlite3.Connection,
    relation_type: RelationType,
    context_id: int,
    identity: RelationMappingComment,
    relations_only: bool,
) -> list[FilteredRelation]:
    """Return the relations of *relation_type* owned by a property on *context_id*.

    Args:
        conn: Open DB connection.
        relation_type: The relation type the picker maps onto.
        context_id: Id of the content / media / member being edited.
        identity: Comment describing the picker property (alias and ids).
        relations_only: Whether the picker uses the relations-only save format.

    Returns:
        ``(relation, decoded comment)`` pairs, highest sort order first.
    """
    decoded = [
        (relation, RelationMappingComment.parse(relation.comment))
        for relation in get_relations_by_type(conn, relation_type.id)
    ]

    if relation_type.is_bidirectional and relations_only:
        # Either end may be the context; a link keeps whichever direction it
        # was last saved from, so match on the data type rather than on the
        # property-type instance.
        matched = [
            (relation, comment)
            for relation, comment in decoded
            if context_id in (relation.child_id, relation.parent_id)
            and comment.data_type_definition_id == identity.data_type_definition_id
        ]
        return sorted(
            matched,
            key=lambda pair: (
                pair[1].child_sort_order
                if pair[0].child_id == context_id
                else pair[1].parent_sort_order
            ),
            reverse=True,
        )

    matched = [
        (relation, comment)
        for relation, comment in decoded
        if relation.child_id == context_id
        and comment.property_type_id == identity.property_type_id
    ]
    if identity.is_in_archetype():
        matched = [
            (relation, comment)
            for relation, comment in matched
            if comment.matches_archetype_property(identity.property_alias)
        ]
    return sorted(matched, key=lambda pair: pair[1].parent_sort_order, reverse=True)
