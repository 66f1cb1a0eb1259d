"""Module installation and uninstallation.

Install:
1. Check the module is installable (known file, not installed, Module subclass)
2. Chase requirements: install missing ones first when allowed
3. Abort with UnmetDependencyError if still unmet (unless forced)
4. Insert the registry row, then call the module's on_install()
5. Add the permissions the module declares
6. Install modules from its "installs" list that aren't installed yet

Uninstall:
1. Refuse (return False) if not installed, permanent, required by others or a Fieldtype in use
2. Uninstall modules that exist only to serve this one
3. Remove hooks, call on_uninstall(), delete the registry row
4. Put the module file back in the installable index, delete its permissions, refresh

Only the primary module's own failures abort an install. Failures of
permissions, auto-installs and auto-uninstalls are recorded in notices and
the log, and the primary operation carries on. The registry row is the only
thing rolled back.
"""

import logging
import os
import shutil
from dataclasses import dataclass
from dataclasses import field
from enum import Enum
from pathlib import Path
from typing import Any

from .catalog import ModuleCatalog
from .catalog import module_class_file
from .exceptions import DatabaseError
from .exceptions import DependencyCycleError
from .exceptions import ModuleDeleteError
from .exceptions import ModuleInstallError
from .exceptions import UnmetDependencyError
from .module import Fieldtype
from .module import Module
from .notices import Notices
from .permissions import PermissionStore
from .protocols import FieldtypeUsageProvider
from .protocols import PermissionStoreProtocol
from .resolver import DependencyResolver
from .schema import InstallOptions
from .schema import ModuleFlags
from .utils import is_valid_permission_name
from .utils import sanitize_name
from .versions import extract_operator_version

logger = logging.getLogger(__name__)


class ErrorKind(str, Enum):
    """Why an install or uninstall did not happen."""

    NOT_INSTALLABLE = "not_installable"
    UNMET_DEPENDENCY = "unmet_dependency"
    DEPENDENCY_CYCLE = "dependency_cycle"
    REGISTRY_FAILED = "registry_failed"
    INSTALL_FAILED = "install_failed"
    BLOCKED = "blocked"


_EXCEPTIONS = {
    ErrorKind.UNMET_DEPENDENCY: UnmetDependencyError,
    ErrorKind.DEPENDENCY_CYCLE: DependencyCycleError,
}


@dataclass
class InstallOutcome:
    """Result of an install or uninstall attempt."""

    name: str
    module: Module | None = None
    kind: ErrorKind | None = None
    error: str = ""
    context: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.kind is None

    def raise_for_error(self) -> None:
        """Raise the exception matching this outcome's error kind, if any."""
        if self.ok:
            return
        exc_class = _EXCEPTIONS.get(self.kind, ModuleInstallError)
        raise exc_class(self.error, context={"module": self.name, "kind": self.kind.value, **self.context})


def _is_within(path: Path, parent: Path) -> bool:
    return path == parent or parent in path.parents


class ModulesInstaller:
    """
    Install, uninstall and delete modules.

    Example:
        >>> catalog = ModuleCatalog.from_config(config)
        >>> installer = ModulesInstaller(catalog)
        >>> module = installer.install("HelloWorld")
        >>> installer.uninstall("HelloWorld")
        True
    """

    def __init__(
        self,
        catalog: ModuleCatalog,
        resolver: DependencyResolver | None = None,
        permissions: PermissionStoreProtocol | None = None,
        fieldtypes: FieldtypeUsageProvider | None = None,
        notices: Notices | None = None,
    ):
        """Initialize installer.

        Args:
            catalog: Module catalog (registry, installable index, module info)
            resolver: Dependency resolver (built from catalog if None)
            permissions: Permission store (built from catalog config if None)
            fieldtypes: Reports Fieldtypes in use; without it no Fieldtype counts as in use
            notices: Where messages, warnings and errors are collected
        """
        self.catalog = catalog
        self.resolver = resolver or DependencyResolver(catalog)
        self.permissions = permissions if permissions is not None else PermissionStore(catalog.config.permissions_path)
        self.fieldtypes = fieldtypes
        self.notices = notices if notices is not None else Notices()

        # Modules with an install/uninstall in progress, outermost first
        self._installing: list[str] = []
        self._uninstalling: list[str] = []

    # Install

    def get_installable(self) -> dict[str, Path]:
        """Modules that aren't installed, as name => file."""
        return self.catalog.get_installable()

    def is_installable(self, name: str, now: bool = False) -> bool:
        """
        Can the module be installed?

        Args:
            name: Module class name
            now: Also require that all its requirements are already met

        Returns:
            True if the module has an installable file and a Module class
        """
        if self.catalog.installable_file(name) is None:
            return False

        cls = self.catalog.get_module_class(name)
        if cls is None or not issubclass(cls, Module):
            return False

        if now and self.resolver.get_requires_for_install(name):
            return False

        return True

    def install(self, name: str, options: InstallOptions | None = None) -> Module | None:
        """
        Install a module.

        Args:
            name: Module class name
            options: Install options (dependencies=True, reset_cache=True, force=False)

        Returns:
            The installed module instance, or None if it could not be installed

        Raises:
            UnmetDependencyError: If requirements can't be met and force is off
            DependencyCycleError: If the requirement chase leads back to this module
        """
        outcome = self.install_outcome(name, options)
        if outcome.kind in _EXCEPTIONS:
            outcome.raise_for_error()
        return outcome.module

    def install_outcome(self, name: str, options: InstallOptions | None = None) -> InstallOutcome:
        """Install a module and report the outcome instead of raising."""
        return self._install(name, options or InstallOptions())

    def _install(self, name: str, options: InstallOptions) -> InstallOutcome:
        if name in self._installing:
            chain = [*self._installing, name]
            return InstallOutcome(
                name,
                kind=ErrorKind.DEPENDENCY_CYCLE,
                error=f"Dependency cycle detected: {' -> '.join(chain)}",
                context={"cycle": chain},
            )

        if not self.is_installable(name):
            logger.debug(f"Module {name} is not installable")
            return InstallOutcome(name, kind=ErrorKind.NOT_INSTALLABLE, error=f"Module {name} is not installable")

        self._installing.append(name)
        try:
            return self._install_module(name, options)
        finally:
            self._installing.pop()

    def _install_module(self, name: str, options: InstallOptions) -> InstallOutcome:
        dependency_options = options.model_copy(update={"reset_cache": False})

        requires = self.resolver.get_requires_for_install(name)
        if requires:
            error = ""
            installable = False
            if options.dependencies:
                names = [extract_operator_version(r)[0] for r in requires]
                installable = all(self.is_installable(n) for n in names)
                if installable:
                    for required in names:
                        result = self._install(required, dependency_options)
                        if result.kind is ErrorKind.DEPENDENCY_CYCLE:
                            return result
                        if not result.ok:
                            error = f"Unable to install required module - {required}."
                            installable = False
                            break
                if installable:
                    # A required module may have installed at a version that still doesn't satisfy
                    requires = self.resolver.get_requires_for_install(name)
                    installable = not requires

            if not installable:
                error = f"Module {name} requires: {', '.join(requires)} {error}".strip()
                if not options.force:
                    return InstallOutcome(
                        name,
                        kind=ErrorKind.UNMET_DEPENDENCY,
                        error=error,
                        context={"requires": requires},
                    )
                self.notices.warning(f"Warning! {error}")

        path = self.catalog.installable_file(name)
        module = self.catalog.new_module(name)
        if module is None:
            return InstallOutcome(name, kind=ErrorKind.NOT_INSTALLABLE, error=f"Unable to load module {name}")

        flags = ModuleFlags.NONE
        if self.catalog.is_singular(module):
            flags |= ModuleFlags.SINGULAR
        if self.catalog.is_autoload(module):
            flags |= ModuleFlags.AUTOLOAD

        try:
            entry = self.catalog.registry.add_entry(name, flags)
        except DatabaseError as e:
            error = f"Unable to add module to registry ({name}): {e}"
            self.notices.error(error)
            return InstallOutcome(name, kind=ErrorKind.REGISTRY_FAILED, error=error)

        self.catalog.add(module)
        self.catalog.set_installable_file(name, None)

        # Called after the row exists, since the module may need its id
        try:
            module.on_install()
        except DatabaseError as e:
            # Soft failure: the registry row stays
            self.notices.error(f"Module reported error during install ({name}): {e}")
        except Exception as e:
            error = f"Unable to install module ({name}): {e}"
            try:
                self.catalog.registry.remove_by_id(entry.id)
            except DatabaseError as ee:
                self.notices.error(f"Unable to remove module from registry ({name}): {ee}")
            self.catalog.remove(name)
            self.catalog.set_installable_file(name, path)
            self.notices.error(error)
            return InstallOutcome(name, kind=ErrorKind.INSTALL_FAILED, error=error)

        info = self.catalog.get_module_info(name, no_cache=True)

        for permission_name, title in info.permissions.items():
            permission_name = sanitize_name(permission_name)
            if not is_valid_permission_name(permission_name):
                continue
            if self.permissions.get(permission_name) is not None:
                continue
            try:
                self.permissions.add(permission_name, title)
                self.notices.message(f"Added Permission: {permission_name}")
            except Exception as e:
                self.notices.error(f"Error adding permission: {permission_name} ({e})")

        # Modules in "installs" that the module's own install did not take care of
        for other in info.installs:
            if self.catalog.is_installed(other):
                continue
            try:
                result = self._install(other, dependency_options)
            except Exception as e:
                self.notices.error(f"Module Auto Install: {other} - {e}")
                continue
            if result.ok:
                self.notices.message(f"Module Auto Install: {other}")
            else:
                self.notices.error(f"Module Auto Install: {other} - {result.error}")

        logger.info(f"Installed module '{name}'")
        if options.reset_cache:
            self.catalog.clear_module_info_cache()

        return InstallOutcome(name, module=module)

    # Uninstall

    def is_uninstallable(self, name: str, return_reason: bool = False) -> bool | str:
        """
        Can the module be uninstalled?

        Args:
            name: Module class name
            return_reason: Return the reason string instead of False when it can't

        Returns:
            True, False, or the reason it can't be uninstalled
        """
        reason = ""
        not_installed = "Module is not already installed"

        if not self.catalog.is_installed(name):
            reason = f"{not_installed} (a)"
        elif self.catalog.get_module_class(name) is None:
            reason = f"{not_installed} (b: {name})"

        if not reason:
            info = self.catalog.get_module_info(name)
            if info.permanent:
                reason = "Module is permanent"
            elif self.resolver.get_requires_for_uninstall(name):
                reason = "Module is required by other modules that must be removed first"

            if not reason and self._is_fieldtype_in_use(name):
                reason = "This module is a Fieldtype currently in use by one or more fields"

        if return_reason and reason:
            return reason
        return not reason

    def _is_fieldtype_in_use(self, name: str) -> bool:
        if self.fieldtypes is None:
            return False
        cls = self.catalog.get_module_class(name)
        if cls is None or not issubclass(cls, Fieldtype):
            return False
        return name in set(self.fieldtypes.get_fieldtype_names())

    def uninstall(self, name: str) -> bool:
        """
        Uninstall a module.

        Returns:
            True if uninstalled, False if it can't be (see is_uninstallable)

        Raises:
            Exception: Whatever the module's own on_uninstall() raises
            DatabaseError: If the registry row can't be deleted
        """
        return self.uninstall_outcome(name).ok

    def uninstall_outcome(self, name: str) -> InstallOutcome:
        """Uninstall a module and report the outcome. The module's on_uninstall() errors still propagate."""
        if name in self._uninstalling:
            chain = [*self._uninstalling, name]
            error = f"Module {name} is already being uninstalled: {' -> '.join(chain)}"
            logger.warning(error)
            return InstallOutcome(name, kind=ErrorKind.DEPENDENCY_CYCLE, error=error, context={"cycle": chain})

        reason = self.is_uninstallable(name, return_reason=True)
        if reason is not True:
            logger.info(f"Can't uninstall {name}: {reason}")
            return InstallOutcome(name, kind=ErrorKind.BLOCKED, error=str(reason))

        self._uninstalling.append(name)
        try:
            return self._uninstall_module(name)
        finally:
            self._uninstalling.pop()

    def _uninstall_module(self, name: str) -> InstallOutcome:
        # Modules still installed that exist only to serve this one
        for other in self.resolver.get_uninstalls(name):
            try:
                result = self.uninstall_outcome(other)
            except Exception as e:
                self.notices.error(f"Module Auto Uninstall: {other} - {e}")
                continue
            if result.ok:
                self.notices.message(f"Module Auto Uninstall: {other}")
            else:
                self.notices.warning(f"Module Auto Uninstall: {other} - {result.error}")

        info = self.catalog.get_module_info(name)
        module = self.catalog.get_module(name, no_init=True)
        if module is None:
            return InstallOutcome(name, kind=ErrorKind.NOT_INSTALLABLE, error=f"Unable to load module {name}")

        for hook in self.catalog.hooks.remove_module_hooks(name):
            logger.debug(f"Removed hook {hook.owner} => {hook.target}")

        # May raise to abort the uninstall
        module.on_uninstall()

        self.catalog.registry.remove_entry(name)
        self.catalog.set_installable_file(name, module_class_file(type(module)))
        self.catalog.remove(name)

        # Deleted by name, even if another installed module declares the same permission
        for permission_name in info.permissions:
            permission_name = sanitize_name(permission_name)
            if not is_valid_permission_name(permission_name):
                continue
            if self.permissions.get(permission_name) is None:
                continue
            try:
                self.permissions.delete(permission_name)
                self.notices.message(f"Deleted Permission: {permission_name}")
            except Exception as e:
                self.notices.error(f"Error deleting permission: {permission_name} ({e})")

        logger.info(f"Uninstalled module '{name}'")
        self.catalog.refresh()

        return InstallOutcome(name)

    # Delete

    def is_deleteable(self, name: str, return_reason: bool = False) -> bool | str:
        """
        Can the module's files be removed from disk?

        Only uninstalled modules discovered from module files qualify; core
        modules, symlinked modules and read-only files do not.
        """
        reason = ""
        filename = self.catalog.files.get(name)
        core_path = self.catalog.config.core_modules_path

        if filename is None or self.catalog.is_installed(name):
            reason = "Module must be uninstalled before it can be deleted."
        elif filename.is_symlink() or filename.parent.is_symlink() or filename.parent.parent.is_symlink():
            reason = "Module is linked to another location"
        elif not filename.is_file():
            reason = "Module file does not exist"
        elif core_path is not None and _is_within(filename.resolve(), core_path.resolve()):
            reason = "Core modules may not be deleted."
        elif not os.access(filename, os.W_OK):
            reason = "We have no write access to the module file, it must be removed manually."

        if return_reason and reason:
            return reason
        return not reason

    def delete(self, name: str) -> bool:
        """
        Delete an uninstalled module's files.

        When the module has its own directory (modules/<Name>/) with no other
        modules or symlinks in it, the whole directory is removed, along with a
        ".<Name>" backup directory beside it. Otherwise only the module's own
        files are removed.

        Returns:
            True unless removing the module directory failed

        Raises:
            ModuleDeleteError: If the module can't be deleted (with the reason)
        """
        reason = self.is_deleteable(name, return_reason=True)
        if reason is not True:
            raise ModuleDeleteError(str(reason), context={"module": name})

        config = self.catalog.config
        suffix = config.module_suffix
        filename = self.catalog.files[name]

        if filename.name != f"{name}{suffix}":
            raise ModuleDeleteError("Unrecognized module filename format", context={"file": str(filename)})

        path = filename.parent
        backup_path = path.parent / f".{path.name}"

        core_path = config.core_modules_path.resolve() if config.core_modules_path else None
        modules_paths = [p.resolve() for p in config.module_paths if p.resolve() != core_path]
        in_path = any(_is_within(path.parent.resolve(), p) for p in modules_paths)
        in_root = path.resolve() in modules_paths

        files = [f"{name}{suffix}", f"{name}.info.json", f"{name}.config.py", f"{name}Config.py"]
        success = True

        if in_path:
            other_modules = 0
            links = 0
            for item in path.rglob("*"):
                if item.is_symlink():
                    links += 1
                    continue
                if item.is_dir() or item.name in files:
                    continue
                if item.name.endswith(suffix):
                    other_modules += 1
                elif item.parent == path and item.name.startswith(f"{name}."):
                    files.append(item.name)

            if not in_root and not other_modules and not links:
                try:
                    shutil.rmtree(path)
                    self.notices.message(f"Removed directory: {path}")
                    files = []
                    if backup_path.is_dir():
                        shutil.rmtree(backup_path)
                        self.notices.message(f"Removed directory: {backup_path}")
                except OSError as e:
                    success = False
                    self.notices.error(f"Failed to remove directory: {path} ({e})")

        for file_name in files:
            file = path / file_name
            if not file.exists():
                continue
            try:
                file.unlink()
                self.notices.message(f"Removed file: {file}")
            except OSError as e:
                self.notices.error(f"Unable to remove file: {file} ({e})")

        self.catalog.forget_file(name)
        logger.info(f"Deleted module '{name}'")
        return success
