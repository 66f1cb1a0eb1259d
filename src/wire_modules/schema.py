"""Module metadata schema.

Modules describe themselves with a plain dict (see ``Module.module_info``).
ModuleInfo normalizes that dict: comma separated strings become lists and each
``requires`` entry is split into a class name plus a DependencyEdge.
"""

from enum import IntFlag
from typing import Any

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from .versions import extract_operator_version


class ModuleFlags(IntFlag):
    """Bit flags stored with each registry row."""

    NONE = 0
    SINGULAR = 1
    AUTOLOAD = 2
    DUPLICATE = 4
    CONDITIONAL = 8
    DISABLED = 16
    NO_USER_CONFIG = 32
    NO_FILE = 64


class DependencyEdge(BaseModel):
    """A single requirement: target module plus optional version constraint."""

    model_config = ConfigDict(frozen=True)

    target: str
    operator: str = ">="
    version: int | str | None = None

    @property
    def has_version(self) -> bool:
        return self.version not in (None, "", 0)

    def __str__(self) -> str:
        if not self.has_version:
            return self.target
        return f"{self.target}{self.operator}{self.version}"


def _split_names(value: Any) -> list[str]:
    """Accept "A, B" or ["A", "B"] and return a clean list."""
    if not value:
        return []
    if isinstance(value, str):
        value = value.replace(" ", "").split(",")
    return [str(v).strip() for v in value if str(v).strip()]


class ModuleInfo(BaseModel):
    """
    Normalized module information.

    ``requires`` holds class names only; ``requires_versions`` maps each of those
    names to the edge carrying its operator and version.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    title: str = ""
    summary: str = ""
    version: int | str = 0

    requires: list[str] = Field(default_factory=list)
    requires_versions: dict[str, DependencyEdge] = Field(default_factory=dict)
    installs: list[str] = Field(default_factory=list)
    permissions: dict[str, str] = Field(default_factory=dict)

    permanent: bool = False
    singular: bool | None = None
    autoload: bool | None = None

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any] | None) -> "ModuleInfo":
        """
        Build ModuleInfo from a module's raw info dict.

        Args:
            name: Module class name
            data: Raw info, e.g. {"version": 101, "requires": "Bar>=1.0.0, Baz"}

        Returns:
            ModuleInfo instance
        """
        data = dict(data or {})

        requires: list[str] = []
        requires_versions: dict[str, DependencyEdge] = {}
        for require in _split_names(data.get("requires")):
            target, operator, version = extract_operator_version(require)
            requires.append(target)
            requires_versions[target] = DependencyEdge(target=target, operator=operator or ">=", version=version)

        version = data.get("version") or 0
        if not isinstance(version, (int, str)):
            version = str(version)

        permissions = data.get("permissions") or {}
        if isinstance(permissions, (list, tuple)):
            permissions = {p: p for p in permissions}

        return cls(
            name=name,
            title=data.get("title", name),
            summary=data.get("summary", ""),
            version=version,
            requires=requires,
            requires_versions=requires_versions,
            installs=_split_names(data.get("installs")),
            permissions={str(k): str(v) for k, v in permissions.items()},
            permanent=bool(data.get("permanent", False)),
            singular=data.get("singular"),
            autoload=None if data.get("autoload") is None else bool(data.get("autoload")),
        )

    def edge(self, target: str) -> DependencyEdge:
        """Get the requirement edge for target (unconstrained if not declared with a version)."""
        return self.requires_versions.get(target) or DependencyEdge(target=target)


class InstallOptions(BaseModel):
    """Options for ModulesInstaller.install()."""

    model_config = ConfigDict(frozen=True)

    # Install uninstalled requirements first
    dependencies: bool = True
    # Clear the module info cache when done (only the outermost call does this)
    reset_cache: bool = True
    # Install even when requirements can't be met (a warning is recorded)
    force: bool = False
