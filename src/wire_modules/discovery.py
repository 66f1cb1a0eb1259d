"""Module file discovery - Convention over configuration.

Convention:
- A module lives in a file named <ClassName>.module.py
- The file may sit directly in a modules directory or anywhere beneath it
  (usually modules/<ClassName>/<ClassName>.module.py)
- Hidden directories (e.g. ".HelloWorld" backups) are skipped
- The file defines a class named <ClassName> deriving from Module
"""

import hashlib
import importlib.util
import logging
import sys
from pathlib import Path

from .module import Module
from .utils import DEFAULT_MODULE_SUFFIX
from .utils import module_name_from_file

logger = logging.getLogger(__name__)


def _is_hidden(path: Path, root: Path) -> bool:
    return any(part.startswith(".") for part in path.relative_to(root).parts)


def discover_module_files(module_paths: list[Path], suffix: str = DEFAULT_MODULE_SUFFIX) -> dict[str, Path]:
    """
    Find module files in the given directories.

    Args:
        module_paths: Directories to scan, in precedence order (lowest to highest).
                      A module found in a later path replaces one found earlier.
        suffix: Module file suffix

    Returns:
        Dict of module class name => file path

    Example:
        >>> files = discover_module_files([Path("wire/modules"), Path("site/modules")])
        >>> files["HelloWorld"]
        PosixPath('site/modules/HelloWorld/HelloWorld.module.py')
    """
    found: dict[str, Path] = {}

    for modules_path in module_paths:
        if not modules_path.exists() or not modules_path.is_dir():
            continue

        for file in sorted(modules_path.rglob(f"*{suffix}")):
            if not file.is_file() or _is_hidden(file, modules_path):
                continue

            name = module_name_from_file(file, suffix)
            if name is None:
                continue

            if name in found:
                logger.debug(f"Duplicate module file for {name}: {file} replaces {found[name]}")
            found[name] = file

    return found


def load_module_class(path: Path, class_name: str) -> type[Module] | None:
    """
    Import a module file and return the module class it defines.

    Args:
        path: Module file
        class_name: Expected class name

    Returns:
        The class, or None if the file can't be imported or does not define a Module subclass
    """
    digest = hashlib.sha1(str(path.resolve()).encode()).hexdigest()[:12]
    import_name = f"wire_modules_site_{class_name}_{digest}"

    spec = importlib.util.spec_from_file_location(import_name, path)
    if spec is None or spec.loader is None:
        logger.warning(f"Can't import module file: {path}")
        return None

    py_module = importlib.util.module_from_spec(spec)
    sys.modules[import_name] = py_module
    try:
        spec.loader.exec_module(py_module)
    except Exception as e:
        del sys.modules[import_name]
        logger.warning(f"Error importing module file {path}: {e}")
        return None

    cls = getattr(py_module, class_name, None)
    if not isinstance(cls, type) or not issubclass(cls, Module):
        logger.warning(f"{path} does not define a Module subclass named {class_name}")
        return None

    return cls
