"""Centralised settings for relmap.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("RELMAP_WORKSPACE", Path.home() / ".relmap_data")
        )
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the SQLite database file."""
        return self.workspace_dir / "relmap.db"

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # Picker detection
    # ------------------------------------------------------------------
    picker_editor_prefix: str = field(
        default_factory=lambda: os.environ.get("RELMAP_PICKER_EDITOR_PREFIX", "Picker.")
    )
    relations_only_format: str = "relationsOnly"

    # ------------------------------------------------------------------
    # Nested (archetype) property groups
    # ------------------------------------------------------------------
    archetype_alias_prefix: str = field(
        default_factory=lambda: os.environ.get("RELMAP_ARCHETYPE_PREFIX", "archetype-property")
    )
    archetype_alias_delimiter: str = "-"
    archetype_segment_index: int = 2

    # ------------------------------------------------------------------
    # Relation mapping policy
    # ------------------------------------------------------------------
    # An absent raw value on a relations-only picker is read as "selection
    # cleared" when true, and as "no change" when false.
    null_value_clears_relations: bool = field(
        default_factory=lambda: _env_flag("RELMAP_NULL_CLEARS_RELATIONS", "true")
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("RELMAP_LOG_LEVEL", "WARNING")
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton — import this everywhere:
#   from relmap.config import settings
settings = Settings()
