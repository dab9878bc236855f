"""Relation mapping: mirrors picker selections into the relation store.

Public re-exports::

    from relmap.mapping import RelationMappingComment, filter_relations
    from relmap.mapping import update_relation_mapping, get_related_ids
    from relmap.mapping import RelationMappingEvents
"""

from relmap.mapping.comment import RelationMappingComment, resolve_property_comment
from relmap.mapping.events import RelationMappingEvents
from relmap.mapping.filter import filter_relations
from relmap.mapping.sync import ReconcileResult, get_related_ids, update_relation_mapping

__all__ = [
    "RelationMappingComment",
    "RelationMappingEvents",
    "ReconcileResult",
    "filter_relations",
    "get_related_ids",
    "resolve_property_comment",
    "update_relation_mapping",
]
