"""Keep relations in step with picker properties as entities are saved.

While a batch is *saving* (before the host writes anything) every dirty
entity's relation-mapped pickers are snapshotted into the batch.  Once the
batch is *saved* each snapshot is reconciled against the relation store.
Snapshots are keyed by entity key because new entities have no id yet while
saving.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Sequence

from relmap.config import settings
from relmap.db.entities import get_data_type, get_property_types
from relmap.db.models import Entity
from relmap.errors import RelationMappingBatchError, SavedValueError
from relmap.mapping.picker import Picker, PickerConfig, is_picker
from relmap.mapping.save_format import get_keys
from relmap.mapping.sync import update_relation_mapping
from relmap.services import EntityService, SaveBatch

logger = logging.getLogger(__name__)


class RelationMappingEvents:
    """Subscribes to the saving / saved notifications of entity services.

    Usage::

        events = RelationMappingEvents(conn)
        events.register(ContentService(conn), MediaService(conn), MemberService(conn))
    """

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn

    def register(self, *services: EntityService) -> None:
        for service in services:
            service.on_saving(self.saving)
            service.on_saved(self.saved)

    # ------------------------------------------------------------------
    # Saving
    # ------------------------------------------------------------------
    def saving(self, sender: EntityService, batch: SaveBatch, entities: Sequence[Entity]) -> None:
        """Stage picker snapshots, clearing relations-only values on the entity.

        A picker whose raw value cannot be decoded is not staged; its value
        is left as it was and the error is recorded on the batch.
        """
        for entity in entities:
            if not entity.is_dirty():
                continue
            batch.staged[entity.key] = self._snapshot_pickers(batch, entity)
            logger.debug(
                "Staged %d picker(s) for %s %s", len(batch.staged[entity.key]), sender.kind, entity.key
            )

    def _snapshot_pickers(self, batch: SaveBatch, entity: Entity) -> list[Picker]:
        pickers: list[Picker] = []
        for property_type in get_property_types(self.conn, entity.entity_type):
            if not is_picker(property_type.editor_alias):
                continue
            data_type = get_data_type(self.conn, property_type.data_type_id)
            if data_type is None:
                continue
            config = PickerConfig.from_data_type(data_type)
            if not config.relation_type_alias:
                continue

            picker = Picker(
                entity_id=entity.id,
                parent_id=entity.parent_id,
                property_alias=property_type.alias,
                data_type_id=property_type.data_type_id,
                editor_alias=property_type.editor_alias,
                saved_value=entity.get_value(property_type.alias),
                relation_type_alias=config.relation_type_alias,
                relations_only=config.relations_only,
            )

            if config.relations_only and picker.saved_value is None:
                if not settings.null_value_clears_relations:
                    continue
                picker.picked_keys = []
            else:
                try:
                    picker.picked_keys = get_keys(picker.saved_value)
                except SavedValueError as exc:
                    logger.exception(
                        "Unreadable value for %s on %s, relations left unchanged",
                        property_type.alias,
                        entity.key,
                    )
                    batch.failures.append((entity.key, property_type.alias, exc))
                    continue
                if config.relations_only:
                    entity.set_value(property_type.alias, None)

            pickers.append(picker)
        return pickers

    # ------------------------------------------------------------------
    # Saved
    # ------------------------------------------------------------------
    def saved(self, sender: EntityService, batch: SaveBatch, entities: Sequence[Entity]) -> None:
        """Reconcile every staged snapshot, then drain the batch.

        Raises:
            RelationMappingBatchError: After the whole batch has been
                processed, if any picker failed while saving or reconciling.
        """
        failures = list(batch.failures)
        try:
            for entity in entities:
                for picker in batch.staged.get(entity.key, []):
                    try:
                        update_relation_mapping(
                            self.conn,
                            entity.id,
                            picker.property_alias,
                            picker.relation_type_alias,
                            picker.relations_only,
                            picker.picked_ids(self.conn),
                        )
                    except Exception as exc:
                        logger.exception(
                            "Relation mapping failed for %s %s (%s)",
                            sender.kind,
                            entity.id,
                            picker.property_alias,
                        )
                        failures.append((entity.key, picker.property_alias, exc))
        finally:
            batch.staged.clear()
            batch.failures.clear()

        if failures:
            raise RelationMappingBatchError(failures)
