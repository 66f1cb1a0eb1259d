"""Permission store.

Modules declare permissions as {name: title}. The installer adds the ones that
don't exist yet and deletes them again, by name, on uninstall.
"""

import json
import logging
from dataclasses import asdict
from dataclasses import dataclass
from pathlib import Path

from .exceptions import DatabaseError

logger = logging.getLogger(__name__)


@dataclass
class Permission:
    id: int
    name: str
    title: str = ""


class PermissionStore:
    """Permissions keyed by name, persisted as JSON when a path is given."""

    def __init__(self, path: Path | None = None):
        self.path = path
        self._items: dict[str, Permission] = {}
        self._next_id = 1
        self._load()

    def _load(self) -> None:
        if self.path is None or not self.path.exists():
            return

        try:
            with open(self.path) as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise DatabaseError(f"Failed to load permissions: {e}", context={"path": str(self.path)}) from e

        try:
            self._items = {p["name"]: Permission(**p) for p in data.get("permissions", [])}
        except (TypeError, KeyError) as e:
            raise DatabaseError(f"Invalid permission record: {e}", context={"path": str(self.path)}) from e
        self._next_id = max([1] + [p.id + 1 for p in self._items.values()])

    def _save(self) -> None:
        if self.path is None:
            return
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(self.path, "w") as f:
                json.dump({"permissions": [asdict(p) for p in self._items.values()]}, f, indent=2)
        except OSError as e:
            raise DatabaseError(f"Failed to save permissions: {e}", context={"path": str(self.path)}) from e

    def get(self, name: str) -> Permission | None:
        return self._items.get(name)

    def add(self, name: str, title: str = "") -> Permission:
        """
        Add a permission.

        Raises:
            DatabaseError: If it already exists or could not be saved
        """
        if name in self._items:
            raise DatabaseError(f"Permission '{name}' already exists", context={"permission": name})

        permission = Permission(id=self._next_id, name=name, title=title)
        self._items[name] = permission
        self._next_id += 1
        self._save()
        logger.debug(f"Added permission {name}")
        return permission

    def delete(self, name: str) -> bool:
        if self._items.pop(name, None) is None:
            return False
        self._save()
        logger.debug(f"Deleted permission {name}")
        return True

    def names(self) -> list[str]:
        return sorted(self._items)

    def __contains__(self, name: str) -> bool:
        return name in self._items

    def __len__(self) -> int:
        return len(self._items)
