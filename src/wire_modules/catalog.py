"""Module catalog - what modules exist, which are installed, and their info.

The catalog is a service, not a global: apps build one (usually with
``ModuleCatalog.from_config``) and pass it to the resolver and installer.

Modules become known to the catalog in two ways:
- Discovered: <ClassName>.module.py files under the configured module paths
- Registered: classes handed to ``register()`` directly (core modules, tests)
"""

import inspect
import logging
from pathlib import Path

from .config import ModulesConfig
from .discovery import discover_module_files
from .discovery import load_module_class
from .hooks import HookRegistry
from .module import Module
from .registry import ModuleRegistry
from .schema import ModuleInfo
from .versions import extract_operator_version
from .versions import version_compare

logger = logging.getLogger(__name__)

def module_class_file(cls: type) -> Path:
    """File that defines a module class, found by reflection."""
    try:
        return Path(inspect.getfile(cls))
    except TypeError:
        # Classes without a source file (e.g. defined in __main__ of an interpreter session)
        return Path(f"<{cls.__module__}>")


class ModuleCatalog:
    """
    Known modules and their installed state.

    Holds:
    - registry: persisted rows for installed modules
    - files: discovery index (class name => module file), installed or not
    - installable index: subset of known modules that are not installed
    - loaded instances of installed modules
    - module info cache
    """

    def __init__(
        self,
        registry: ModuleRegistry | None = None,
        config: ModulesConfig | None = None,
        hooks: HookRegistry | None = None,
    ):
        """Initialize catalog.

        Args:
            registry: Registry of installed modules (in-memory registry if None)
            config: Module paths and runtime versions (defaults if None)
            hooks: Hook registry shared with loaded modules (new one if None)
        """
        self.config = config or ModulesConfig()
        self.registry = registry if registry is not None else ModuleRegistry(self.config.registry_path)
        self.hooks = hooks if hooks is not None else HookRegistry()

        self.files: dict[str, Path] = {}
        self._classes: dict[str, type[Module]] = {}
        self._registered: set[str] = set()
        self._installable: dict[str, Path] = {}
        self._loaded: dict[str, Module] = {}
        self._info_cache: dict[str, ModuleInfo] = {}

        self.refresh()

    @classmethod
    def from_config(cls, config: ModulesConfig) -> "ModuleCatalog":
        """Build a catalog with a registry stored where config says."""
        return cls(registry=ModuleRegistry(config.registry_path), config=config)

    def refresh(self) -> None:
        """Rescan module files and rebuild the installable index."""
        self.files = discover_module_files(self.config.module_paths, self.config.module_suffix)
        self._info_cache.clear()

        # Classes loaded from files that have since been removed are forgotten
        for name in list(self._classes):
            if name not in self._registered and name not in self.files:
                del self._classes[name]

        self._installable = {}
        for name, path in self.files.items():
            if not self.registry.is_installed(name):
                self._installable[name] = path
        for name in self._registered:
            if not self.registry.is_installed(name) and name not in self._installable:
                self._installable[name] = module_class_file(self._classes[name])

        for name in list(self._loaded):
            if not self.registry.is_installed(name):
                del self._loaded[name]

        logger.debug(f"Refreshed modules: {len(self.files)} files, {len(self._installable)} installable")

    def register(self, module_class: type[Module], path: Path | None = None) -> None:
        """
        Make a module class known without a module file.

        Args:
            module_class: Module subclass; its class name is the module name
            path: File to record for it (defaults to the file defining the class)
        """
        if not (isinstance(module_class, type) and issubclass(module_class, Module)):
            raise TypeError(f"{module_class!r} is not a Module subclass")

        name = module_class.class_name()
        self._classes[name] = module_class
        self._registered.add(name)
        self._info_cache.pop(name, None)
        if not self.registry.is_installed(name):
            self._installable[name] = path or module_class_file(module_class)

    # Installed state

    def is_installed(self, name: str) -> bool:
        """
        Is the module installed?

        Accepts a plain class name or a requirement like "Name>=1.0.0", in which
        case the installed version must also satisfy it. Pseudo-modules (PHP,
        ProcessWire, Python) are always installed.
        """
        name, operator, required = extract_operator_version(name)

        current = self.runtime_version(name)
        if current is not None:
            installed = True
        else:
            installed = self.registry.is_installed(name)
            if installed and required is not None:
                current = self.get_module_info(name).version

        if installed and required is not None:
            return version_compare(current, required, operator)
        return installed

    def get_module_id(self, name: str) -> int | None:
        entry = self.registry.get_entry(name)
        return entry.id if entry else None

    def runtime_version(self, name: str) -> str | None:
        return self.config.runtime_versions.get(name)

    def module_names(self) -> list[str]:
        """Every known module: discovered, registered or installed."""
        names = set(self.files) | set(self._classes)
        names.update(entry.class_name for entry in self.registry.list_entries())
        return sorted(names)

    # Module info

    def get_module_info(self, name: str, no_cache: bool = False) -> ModuleInfo:
        """
        Get normalized info for a module.

        Unknown modules get an empty ModuleInfo rather than an error, so
        requirement checks can treat them as "not installed".
        """
        if not no_cache and name in self._info_cache:
            return self._info_cache[name]

        runtime = self.runtime_version(name)
        if runtime is not None:
            info = ModuleInfo(name=name, title=name, version=runtime)
        else:
            cls = self.get_module_class(name)
            info = ModuleInfo.from_dict(name, cls.get_module_info()) if cls else ModuleInfo(name=name)

        self._info_cache[name] = info
        return info

    def clear_module_info_cache(self) -> None:
        self._info_cache.clear()
        logger.debug("Cleared module info cache")

    # Classes and instances

    def get_module_class(self, name: str) -> type[Module] | None:
        """Class for a module, importing its file if needed."""
        cls = self._classes.get(name)
        if cls is not None:
            return cls

        path = self.files.get(name)
        if path is None:
            return None

        cls = load_module_class(path, name)
        if cls is not None:
            self._classes[name] = cls
        return cls

    def new_module(self, name: str) -> Module | None:
        """Create a new instance of a module, attached to the hook registry. Does not call init()."""
        cls = self.get_module_class(name)
        if cls is None:
            logger.debug(f"No class found for module {name}")
            return None

        module = cls()
        module.hooks = self.hooks
        return module

    def get_module(self, name: str, no_init: bool = False) -> Module | None:
        """
        Get the loaded instance of an installed module.

        Args:
            name: Module class name
            no_init: Don't call init() when the instance is created here

        Returns:
            Module instance, or None if the module isn't installed or has no class
        """
        if name in self._loaded:
            return self._loaded[name]
        if not self.registry.is_installed(name):
            return None

        module = self.new_module(name)
        if module is None:
            return None
        if not no_init:
            module.init()
        self._loaded[name] = module
        return module

    def add(self, module: Module) -> None:
        """Track a loaded module instance."""
        self._loaded[module.class_name()] = module

    def remove(self, name: str) -> None:
        self._loaded.pop(name, None)

    def is_singular(self, module: Module) -> bool:
        info = self.get_module_info(module.class_name())
        return info.singular if info.singular is not None else module.is_singular()

    def is_autoload(self, module: Module) -> bool:
        info = self.get_module_info(module.class_name())
        return info.autoload if info.autoload is not None else module.is_autoload()

    # Installable index

    def installable_file(self, name: str) -> Path | None:
        """File of a module that is not installed, or None."""
        return self._installable.get(name)

    def set_installable_file(self, name: str, path: Path | None) -> None:
        """Add a module file to the installable index, or remove it with None."""
        if path is None:
            self._installable.pop(name, None)
        else:
            self._installable[name] = path

    def get_installable(self) -> dict[str, Path]:
        """All modules that are not installed, as name => file."""
        return dict(self._installable)

    def forget_file(self, name: str) -> None:
        """Drop a module from the discovery and installable indexes (after its files were deleted)."""
        self.files.pop(name, None)
        self._installable.pop(name, None)
        if name not in self._registered:
            self._classes.pop(name, None)
        self._info_cache.pop(name, None)
