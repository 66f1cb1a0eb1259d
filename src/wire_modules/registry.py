"""Module registry: one persisted row per installed module.

Registry format (JSON):
{
  "version": "1.0",
  "next_id": 3,
  "modules": {
    "HelloWorld": {
      "id": 1,
      "class_name": "HelloWorld",
      "flags": 3,
      "data": {},
      "created": "2025-10-26T12:00:00+00:00"
    }
  }
}

The path is injected by the app. With no path the registry is kept in memory
only, which is what tests and throwaway environments use.
"""

import json
import logging
from dataclasses import asdict
from dataclasses import dataclass
from dataclasses import field
from datetime import UTC
from datetime import datetime
from pathlib import Path
from typing import Any

from .exceptions import DatabaseError
from .schema import ModuleFlags

logger = logging.getLogger(__name__)


@dataclass
class ModuleRegistryEntry:
    """Row in the module registry."""

    id: int
    class_name: str
    flags: int
    created: str
    data: dict[str, Any] = field(default_factory=dict)

    def has_flag(self, flag: ModuleFlags) -> bool:
        return bool(self.flags & flag)

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "ModuleRegistryEntry":
        """Create from dictionary."""
        return cls(**data)


class ModuleRegistry:
    """
    Registry of installed modules (with injected storage path).

    Every mutation is written through immediately; write failures raise
    DatabaseError so callers can roll back.
    """

    VERSION = "1.0"

    def __init__(self, path: Path | None = None):
        """Initialize registry.

        Args:
            path: JSON file to persist rows in, or None for memory only

        Example:
            >>> registry = ModuleRegistry(path=Path("site/assets/modules.json"))
        """
        self.path = path
        self._rows: dict[str, ModuleRegistryEntry] = {}
        self._next_id = 1
        self._load()

    def _load(self) -> None:
        """Load registry file if it exists."""
        if self.path is None or not self.path.exists():
            return

        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise DatabaseError(f"Failed to load module registry: {e}", context={"path": str(self.path)}) from e

        if data.get("version") != self.VERSION:
            logger.warning(f"Registry version mismatch: expected {self.VERSION}, got {data.get('version')}")

        modules = data.get("modules", {})
        try:
            self._rows = {name: ModuleRegistryEntry.from_dict(row) for name, row in modules.items()}
        except (TypeError, AttributeError) as e:
            raise DatabaseError(f"Invalid module registry row: {e}", context={"path": str(self.path)}) from e
        self._next_id = max([data.get("next_id", 1)] + [row.id + 1 for row in self._rows.values()])

        logger.debug(f"Loaded {len(self._rows)} modules from registry")

    def _save(self) -> None:
        """Save registry file."""
        if self.path is None:
            return

        data = {
            "version": self.VERSION,
            "next_id": self._next_id,
            "modules": {name: row.to_dict() for name, row in self._rows.items()},
        }

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump(data, f, indent=2)
        except OSError as e:
            raise DatabaseError(f"Failed to save module registry: {e}", context={"path": str(self.path)}) from e

        logger.debug(f"Saved registry with {len(self._rows)} modules")

    def add_entry(self, class_name: str, flags: int = 0, data: dict[str, Any] | None = None) -> ModuleRegistryEntry:
        """
        Insert a row for a newly installed module.

        Args:
            class_name: Module class name (unique)
            flags: ModuleFlags bitmask
            data: Module config data

        Returns:
            The new row, with its id assigned

        Raises:
            DatabaseError: If a row for class_name already exists or the write failed
        """
        if class_name in self._rows:
            raise DatabaseError(f"Module '{class_name}' is already in the registry", context={"class": class_name})

        entry = ModuleRegistryEntry(
            id=self._next_id,
            class_name=class_name,
            flags=int(flags),
            data=dict(data or {}),
            created=datetime.now(UTC).isoformat(),
        )
        self._rows[class_name] = entry
        self._next_id += 1

        try:
            self._save()
        except DatabaseError:
            del self._rows[class_name]
            raise

        logger.debug(f"Added {class_name} to registry (id={entry.id})")
        return entry

    def remove_entry(self, class_name: str) -> bool:
        """
        Delete the row for class_name.

        Returns:
            True if a row was deleted
        """
        entry = self._rows.pop(class_name, None)
        if entry is None:
            return False

        try:
            self._save()
        except DatabaseError:
            self._rows[class_name] = entry
            raise

        logger.debug(f"Removed {class_name} from registry")
        return True

    def remove_by_id(self, module_id: int) -> bool:
        """Delete the row with the given id."""
        for name, entry in self._rows.items():
            if entry.id == module_id:
                return self.remove_entry(name)
        return False

    def get_entry(self, class_name: str) -> ModuleRegistryEntry | None:
        return self._rows.get(class_name)

    def list_entries(self) -> list[ModuleRegistryEntry]:
        return sorted(self._rows.values(), key=lambda e: e.id)

    def is_installed(self, class_name: str) -> bool:
        return class_name in self._rows

    def __len__(self) -> int:
        return len(self._rows)
