"""Reconcile a picker's selection with the relation store.

:func:`update_relation_mapping` is the write side: given the ordered ids an
editor picked, it creates, re-orders and deletes relations so that the
relations owned by the property match the selection.  :func:`get_related_ids`
is the matching read side.
"""

from __future__ import annotations

import logging
import sqlite3
from dataclasses import dataclass, field, replace
from typing import Optional, Sequence

from relmap.db.entities import get_object_type
from relmap.db.models import Relation
from relmap.db.relations import delete_relation, get_relation_type_by_alias, save_relation
from relmap.errors import ObjectTypeMismatchError
from relmap.mapping.comment import UNSET, resolve_property_comment
from relmap.mapping.filter import filter_relations

logger = logging.getLogger(__name__)


@dataclass
class ReconcileResult:
    """What one call to :func:`update_relation_mapping` changed."""

    created: list[Relation] = field(default_factory=list)
    updated: list[Relation] = field(default_factory=list)
    deleted: list[Relation] = field(default_factory=list)
    mismatches: list[ObjectTypeMismatchError] = field(default_factory=list)
    context_mismatch: Optional[ObjectTypeMismatchError] = None

    @property
    def aborted(self) -> bool:
        return self.context_mismatch is not None


def get_related_ids(
    conn: sqlite3.Connection,
    context_id: int,
    property_alias: str,
    relation_type_alias: str,
    relations_only: bool,
) -> Optional[list[int]]:
    """Return the ids related to *context_id* through a picker property.

    For each owned relation the id at the other end is returned, in picker
    order.  ``None`` when the relation type does not exist.
    """
    relation_type = get_relation_type_by_alias(conn, relation_type_alias)
    if relation_type is None:
        return None

    identity = resolve_property_comment(conn, context_id, property_alias)
    relations = filter_relations(conn, relation_type, context_id, identity, relations_only)
    return [
        relation.parent_id if relation.parent_id != context_id else relation.child_id
        for relation, _ in relations
    ]


def update_relation_mapping(
    conn: sqlite3.Connection,
    context_id: int,
    property_alias: str,
    relation_type_alias: str,
    relations_only: bool,
    picked_ids: Sequence[int],
) -> Optional[ReconcileResult]:
    """Make the relations owned by a picker property match *picked_ids*.

    Every picked id gets a sort order counting down from ``len(picked_ids)``
    so the first item ranks highest.  All writes for one call happen in a
    single transaction.

    Args:
        conn: Open DB connection.
        context_id: Id of the content / media / member that was saved.
        property_alias: Alias of the picker property on that entity.
        relation_type_alias: Alias of the relation type the picker maps onto.
        relations_only: Whether the picker uses the relations-only save format.
        picked_ids: The picked ids, in editor order.  Duplicates are not
            collapsed here.

    Returns:
        A :class:`ReconcileResult`, or ``None`` when the relation type does
        not exist (nothing to reconcile).

    Raises:
        PropertyTypeNotFoundError: If the property cannot be resolved.
    """
    relation_type = get_relation_type_by_alias(conn, relation_type_alias)
    if relation_type is None:
        logger.debug("Relation type %r not found, skipping %s", relation_type_alias, property_alias)
        return None

    identity = resolve_property_comment(conn, context_id, property_alias)
    existing = filter_relations(conn, relation_type, context_id, identity, relations_only)
    result = ReconcileResult()

    context_kind = get_object_type(conn, context_id)
    if context_kind != relation_type.child_object_type:
        result.context_mismatch = ObjectTypeMismatchError(
            context_id, relation_type.child_object_type, context_kind
        )
        logger.warning("Relation mapping aborted for %s: %s", property_alias, result.context_mismatch)
        return result

    total = len(picked_ids)
    with conn:
        for index, picked_id in enumerate(picked_ids):
            sort_order = total - index

            picked_kind = get_object_type(conn, picked_id)
            if picked_kind != relation_type.parent_object_type:
                mismatch = ObjectTypeMismatchError(
                    picked_id, relation_type.parent_object_type, picked_kind
                )
                result.mismatches.append(mismatch)
                logger.warning("Skipping picked id for %s: %s", property_alias, mismatch)
                continue

            match = next((pair for pair in existing if pair[0].parent_id == picked_id), None)
            if match is None:
                relation = Relation(
                    parent_id=picked_id,
                    child_id=context_id,
                    relation_type_id=relation_type.id,
                )
                comment = replace(identity, parent_sort_order=UNSET, child_sort_order=UNSET)

                flipped = next((pair for pair in existing if pair[0].child_id == picked_id), None)
                if flipped is not None:
                    # Same pair saved from the other side: its child order
                    # becomes this record's parent order.
                    old_relation, old_comment = flipped
                    comment.parent_sort_order = old_comment.child_sort_order
                    existing.remove(flipped)
                    delete_relation(conn, old_relation)
                    result.deleted.append(old_relation)

                comment.child_sort_order = sort_order
                relation.comment = comment.to_comment()
                result.created.append(save_relation(conn, relation))
            else:
                relation, comment = match
                relation.comment = replace(comment, child_sort_order=sort_order).to_comment()
                result.updated.append(save_relation(conn, relation))
                existing.remove(match)

            existing = [
                (relation, comment)
                for relation, comment in existing
                if not (
                    relation.child_id == context_id
                    and relation.parent_id == picked_id
                    and relation.relation_type_id == relation_type.id
                )
            ]

        # Anything left over is no longer picked.
        for relation, _ in existing:
            delete_relation(conn, relation)
            result.deleted.append(relation)

    logger.debug(
        "Reconciled %s on %s: %d created, %d updated, %d deleted",
        property_alias,
        context_id,
        len(result.created),
        len(result.updated),
        len(result.deleted),
    )
    return result
