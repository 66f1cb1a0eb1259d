"""Module contract.

A module is a class deriving from Module. It describes itself through the
``module_info`` class attribute (or by overriding ``get_module_info``) and may
override the optional lifecycle methods, which default to no-ops.

Example:
    >>> class HelloWorld(Module):
    ...     module_info = {
    ...         "title": "Hello World",
    ...         "version": 101,
    ...         "requires": "ProcessWire>=3.0.0",
    ...         "permissions": {"hello-world": "Use Hello World"},
    ...     }
    ...
    ...     def on_install(self):
    ...         ...
"""

from collections.abc import Callable
from typing import TYPE_CHECKING
from typing import Any
from typing import ClassVar

if TYPE_CHECKING:
    from .hooks import Hook
    from .hooks import HookRegistry


class Module:
    """Base class for installable modules."""

    module_info: ClassVar[dict[str, Any]] = {}

    def __init__(self) -> None:
        self.hooks: "HookRegistry | None" = None

    @classmethod
    def get_module_info(cls) -> dict[str, Any]:
        """Raw module info dict (normalized by ModuleInfo.from_dict)."""
        return dict(cls.module_info)

    @classmethod
    def class_name(cls) -> str:
        return cls.__name__

    def is_singular(self) -> bool:
        """Only one instance at runtime. Defaults to the "singular" info key."""
        return bool(self.get_module_info().get("singular", False))

    def is_autoload(self) -> bool:
        """Instantiate at boot rather than on demand. Defaults to the "autoload" info key."""
        return bool(self.get_module_info().get("autoload", False))

    def init(self) -> None:
        """Called after instantiation, unless the catalog was asked not to."""

    def on_install(self) -> None:
        """Called once after the module's registry row exists."""

    def on_uninstall(self) -> None:
        """Called before the module's registry row is removed. Raise to abort."""

    def add_hook(self, target: str, callback: Callable[..., Any]) -> int:
        """Attach callback to "Class::method" on behalf of this module.

        Returns:
            Hook id
        """
        if self.hooks is None:
            raise RuntimeError(f"{self.class_name()} is not attached to a hook registry")
        return self.hooks.add(target, callback, owner=self.class_name())

    def get_hooks(self) -> list["Hook"]:
        """Hooks this module owns or that target it."""
        if self.hooks is None:
            return []
        return self.hooks.get_module_hooks(self.class_name())

    def __str__(self) -> str:
        return self.class_name()


class Fieldtype(Module):
    """Module that provides a field type.

    A Fieldtype can't be uninstalled while any field uses it.
    """
