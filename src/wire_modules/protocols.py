"""Protocols for the collaborators the resolver and installer depend on.

The library ships default implementations (ModuleCatalog, PermissionStore);
apps and tests can inject anything that satisfies these interfaces.
"""

from collections.abc import Iterable
from pathlib import Path
from typing import Protocol
from typing import runtime_checkable

from .module import Module
from .schema import ModuleInfo


class ModuleCatalogProtocol(Protocol):
    """Known modules, their info and installed state."""

    def is_installed(self, name: str) -> bool:
        """Installed check. Accepts "Name" or "Name<op><version>"."""
        ...

    def get_module_info(self, name: str, no_cache: bool = False) -> ModuleInfo: ...

    def get_module_class(self, name: str) -> type[Module] | None: ...

    def new_module(self, name: str) -> Module | None: ...

    def get_module(self, name: str, no_init: bool = False) -> Module | None: ...

    def installable_file(self, name: str) -> Path | None:
        """File of a module that is not installed, or None."""
        ...

    def set_installable_file(self, name: str, path: Path | None) -> None: ...

    def runtime_version(self, name: str) -> str | None:
        """Current version of a pseudo-module such as "PHP", None for real modules."""
        ...

    def module_names(self) -> list[str]:
        """Every known module, installed or not."""
        ...


@runtime_checkable
class FieldtypeUsageProvider(Protocol):
    """Reports which Fieldtype modules live fields are using.

    Apps inject this so uninstall can refuse to remove a Fieldtype in use.
    """

    def get_fieldtype_names(self) -> Iterable[str]:
        """Class names of the Fieldtypes used by at least one field."""
        ...


class PermissionStoreProtocol(Protocol):
    """Where module permissions are stored."""

    def get(self, name: str) -> object | None: ...

    def add(self, name: str, title: str = "") -> object: ...

    def delete(self, name: str) -> bool: ...
