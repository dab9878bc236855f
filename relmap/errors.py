"""Exceptions raised by the relation mapping engine.

- RelationMappingError: base class, catch-all for engine failures.
- PropertyTypeNotFoundError: a picker property could not be resolved to its
  property-type / data-type ids, so no relation metadata can be built.
- ObjectTypeMismatchError: an id is not of the object kind the relation type
  expects on that side.
- SavedValueError: a picker's raw json or xml value cannot be decoded into keys.
- RelationMappingBatchError: one or more entity reconciliations in a save
  batch failed.  Raised once the whole batch has been processed.
"""

from __future__ import annotations


class RelationMappingError(Exception):
    """Base class for relation mapping errors."""


class PropertyTypeNotFoundError(RelationMappingError):
    def __init__(self, context_id: int, property_alias: str) -> None:
        super().__init__(
            f"Unable to find property type for context_id={context_id}, "
            f"property_alias={property_alias!r}"
        )
        self.context_id = context_id
        self.property_alias = property_alias


class ObjectTypeMismatchError(RelationMappingError):
    def __init__(self, entity_id: int, expected: str, actual: str | None) -> None:
        super().__init__(
            f"Mismatched object type for id {entity_id}: expected {expected!r}, got {actual!r}"
        )
        self.entity_id = entity_id
        self.expected = expected
        self.actual = actual


class RelationMappingBatchError(RelationMappingError):
    """Collects the per-property failures of one save batch.

    ``failures`` is a list of ``(entity_key, property_alias, exception)``.
    """

    def __init__(self, failures: list[tuple[str, str, BaseException]]) -> None:
        summary = "; ".join(f"{key}/{alias}: {exc}" for key, alias, exc in failures)
        super().__init__(f"{len(failures)} relation mapping(s) failed: {summary}")
        self.failures = failures


class SavedValueError(RelationMappingError):
    """A picker's raw property value could not be decoded into keys."""
