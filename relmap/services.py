"""Save-lifecycle sources: the host services that persist entities.

Each service owns one entity kind.  ``save()`` runs a batch through three
steps, handing the same :class:`SaveBatch` to both notifications::

    saving handlers  ->  persist every entity  ->  saved handlers

Handlers are called synchronously in subscription order and their errors
propagate to the caller of ``save()``.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Sequence

from relmap.db.entities import persist_entity
from relmap.db.models import CONTENT, MEDIA, MEMBER, Entity

logger = logging.getLogger(__name__)


@dataclass
class SaveBatch:
    """Token for one save call, shared by its saving and saved notifications.

    ``staged`` maps an entity key to whatever a subscriber captured for it
    while saving.  ``failures`` collects ``(entity_key, property_alias,
    exception)`` for work a subscriber had to skip.
    """

    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    staged: dict[str, list[Any]] = field(default_factory=dict)
    failures: list[tuple[str, str, BaseException]] = field(default_factory=list)


SaveHandler = Callable[["EntityService", SaveBatch, Sequence[Entity]], None]


class EntityService:
    kind: str = ""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self._saving: list[SaveHandler] = []
        self._saved: list[SaveHandler] = []

    def on_saving(self, handler: SaveHandler) -> None:
        if handler not in self._saving:
            self._saving.append(handler)

    def on_saved(self, handler: SaveHandler) -> None:
        if handler not in self._saved:
            self._saved.append(handler)

    def save(self, *entities: Entity) -> list[Entity]:
        """Persist *entities* as one batch.

        Raises:
            ValueError: If an entity is not of this service's kind.
        """
        for entity in entities:
            if entity.kind != self.kind:
                raise ValueError(f"{type(self).__name__} cannot save {entity.kind!r} entities")

        batch = SaveBatch()
        logger.debug("Saving batch %s: %d %s entities", batch.id, len(entities), self.kind)

        for handler in self._saving:
            handler(self, batch, entities)

        for entity in entities:
            persist_entity(self.conn, entity)

        for handler in self._saved:
            handler(self, batch, entities)

        return list(entities)


class ContentService(EntityService):
    kind = CONTENT


class MediaService(EntityService):
    kind = MEDIA


class MemberService(EntityService):
    kind = MEMBER
