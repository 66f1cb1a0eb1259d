"""Name helpers shared by discovery and the permission store."""

import re
from pathlib import Path

DEFAULT_MODULE_SUFFIX = ".module.py"


def sanitize_name(name: str) -> str:
    """Sanitize a permission name to lowercase letters, digits, "-", "_" and ".".

    Runs of other characters collapse into a single "-".

    Examples:
        >>> sanitize_name("Hello World!")
        'hello-world'
        >>> sanitize_name("page-edit")
        'page-edit'
    """
    name = re.sub(r"[^a-z0-9._-]+", "-", name.strip().lower())
    name = re.sub(r"-{2,}", "-", name)
    return name.strip("-._")


def is_valid_permission_name(name: str) -> bool:
    """Permission names can't be empty or purely numeric (those look like ids)."""
    return bool(name) and not name.isdigit()


def module_name_from_file(path: Path, suffix: str = DEFAULT_MODULE_SUFFIX) -> str | None:
    """Extract a module class name from a module file name.

    Examples:
        >>> module_name_from_file(Path("site/modules/HelloWorld/HelloWorld.module.py"))
        'HelloWorld'
        >>> module_name_from_file(Path("site/modules/helpers.py")) is None
        True
    """
    if not path.name.endswith(suffix):
        return None
    name = path.name[: -len(suffix)]
    if not name.isidentifier():
        return None
    return name
