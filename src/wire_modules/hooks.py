"""Runtime hook registry.

Modules attach callbacks to "Class::method" targets. Hooks live outside the
module registry, so uninstalling a module has to remove them explicitly or
they would keep firing for a module that is gone.
"""

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class Hook:
    """A callback attached to a class method."""

    id: int
    target_class: str
    method: str
    owner: str
    callback: Callable[..., Any]

    @property
    def target(self) -> str:
        return f"{self.target_class}::{self.method}"


class HookRegistry:
    """Hooks for the running system, keyed by id."""

    def __init__(self):
        self._hooks: dict[int, Hook] = {}
        self._ids = itertools.count(1)

    def add(self, target: str, callback: Callable[..., Any], owner: str) -> int:
        """
        Attach a hook.

        Args:
            target: "Class::method" to hook
            callback: Called with the arguments passed to run()
            owner: Class name of the module that owns the callback

        Returns:
            Hook id
        """
        target_class, sep, method = target.partition("::")
        if not sep or not target_class or not method:
            raise ValueError(f"Hook target must be 'Class::method', got {target!r}")

        hook = Hook(id=next(self._ids), target_class=target_class, method=method, owner=owner, callback=callback)
        self._hooks[hook.id] = hook
        logger.debug(f"Added hook {owner} => {hook.target}")
        return hook.id

    def remove(self, hook_id: int) -> bool:
        return self._hooks.pop(hook_id, None) is not None

    def get_hooks(self, target: str | None = None) -> list[Hook]:
        """All hooks, or only those attached to target ("Class::method" or "Class")."""
        if target is None:
            return list(self._hooks.values())
        target_class, _, method = target.partition("::")
        return [
            h for h in self._hooks.values() if h.target_class == target_class and (not method or h.method == method)
        ]

    def get_module_hooks(self, class_name: str) -> list[Hook]:
        """Hooks owned by class_name plus hooks other modules attached to it."""
        return [h for h in self._hooks.values() if class_name in (h.owner, h.target_class)]

    def remove_module_hooks(self, class_name: str) -> list[Hook]:
        """
        Remove every hook owned by or targeting class_name.

        Hooks on an "uninstall" method are left in place, since they are
        about to be triggered by the uninstall that calls this.

        Returns:
            Removed hooks
        """
        removed = []
        for hook in self.get_module_hooks(class_name):
            if hook.method == "uninstall":
                continue
            self.remove(hook.id)
            removed.append(hook)
            logger.debug(f"Removed hook {hook.owner} => {hook.target}")
        return removed

    def run(self, target: str, *args: Any, **kwargs: Any) -> list[Any]:
        """Call every hook attached to "Class::method", in the order added."""
        return [hook.callback(*args, **kwargs) for hook in self.get_hooks(target)]

    def __len__(self) -> int:
        return len(self._hooks)
