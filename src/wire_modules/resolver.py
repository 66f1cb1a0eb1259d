"""Dependency resolver - requirement lists and reverse lookups.

Two kinds of edges connect modules:
- requires: "A requires B" (optionally with a version constraint, e.g. "B>=1.0.0")
- installs: "A installs X" means A offers to install X alongside itself.
  X is uninstalled with A only if X in turn requires A.

The resolver only reads; it never installs or uninstalls anything.
"""

import logging

from .protocols import ModuleCatalogProtocol
from .versions import format_version
from .versions import version_compare

logger = logging.getLogger(__name__)


def _display_version(version: int | str) -> str:
    if isinstance(version, int) or str(version).isdigit():
        return format_version(version)
    return str(version)


class DependencyResolver:
    """
    Resolve module requirements against a module catalog.

    Example:
        >>> resolver = DependencyResolver(catalog)
        >>> resolver.get_requires_for_install("ProcessHello")
        ['FieldtypeHello>=1.0.0']
    """

    def __init__(self, catalog: ModuleCatalogProtocol):
        self.catalog = catalog

    def get_requires(self, name: str, only_missing: bool = False, versions: bool | None = False) -> list[str]:
        """
        Get the modules required by the given one.

        Args:
            name: Module class name
            only_missing: Only return requirements not met right now. Requirements the
                module lists in its own "installs" are considered met, on the
                assumption it installs the version it wants.
            versions: When to append "<operator><version>" to entries:
                False: only when the version is what's missing
                None: never (class names only)
                True: always, for requirements that have a version

        Returns:
            Entries like "ClassName" or "ClassName>=1.0.0"
        """
        info = self.catalog.get_module_info(name)

        if not only_missing:
            if not versions:
                return list(info.requires)
            requires = []
            for target in info.requires:
                edge = info.edge(target)
                if edge.has_version:
                    requires.append(f"{target}{edge.operator}{_display_version(edge.version)}")
                else:
                    requires.append(target)
            return requires

        missing = []
        for target in info.requires:
            if target in info.installs:
                continue

            edge = info.edge(target)
            installed = True
            current = self.catalog.runtime_version(target)

            if current is None:
                if self.catalog.is_installed(target):
                    if not edge.has_version:
                        continue
                    current = self.catalog.get_module_info(target, no_cache=True).version
                else:
                    installed = False

            if installed and (not edge.has_version or version_compare(current, edge.version, edge.operator)):
                continue

            if not edge.has_version or versions is None:
                missing.append(target)
            else:
                missing.append(f"{target}{edge.operator}{_display_version(edge.version)}")

        return missing

    def get_requires_for_install(self, name: str) -> list[str]:
        """Requirements that must be installed before this module can be."""
        return self.get_requires(name, only_missing=True, versions=False)

    def get_required_by(self, name: str, include_uninstalled: bool = False, exclude_installs: bool = False) -> list[str]:
        """
        Get the modules that require the given one.

        Args:
            name: Module class name
            include_uninstalled: Also include dependents that are not installed
            exclude_installs: Leave out dependents that the given module lists in
                its "installs" (their lifecycle is controlled by it)

        Returns:
            Class names of dependent modules
        """
        info = self.catalog.get_module_info(name)
        dependents = []

        for other in self.catalog.module_names():
            if not include_uninstalled and not self.catalog.is_installed(other):
                continue
            other_info = self.catalog.get_module_info(other)
            if not other_info.requires:
                continue
            if exclude_installs and other in info.installs:
                continue
            if name in other_info.requires:
                dependents.append(other)

        return dependents

    def get_requires_for_uninstall(self, name: str) -> list[str]:
        """Installed modules that must be uninstalled before this one can be."""
        return self.get_required_by(name, include_uninstalled=False, exclude_installs=True)

    def get_uninstalls(self, name: str) -> list[str]:
        """
        Get the modules that are uninstalled along with the given one.

        These are modules from its "installs" list that are installed and
        declare that they require it.
        """
        info = self.catalog.get_module_info(name)
        uninstalls = []

        for other in info.installs:
            if not self.catalog.is_installed(other):
                continue
            if name not in self.catalog.get_module_info(other).requires:
                # Not there only to serve this module, leave it installed
                continue
            uninstalls.append(other)

        return uninstalls

    def get_dependency_errors(self, name: str) -> list[str]:
        """
        Describe each requirement of the module that is not met.

        Returns:
            Error messages, empty if all requirements are met
        """
        info = self.catalog.get_module_info(name)
        errors = []

        for target in info.requires:
            error = ""
            edge = info.edge(target)

            if not self.catalog.is_installed(target):
                error = target
            elif edge.has_version:
                current = self.catalog.runtime_version(target)
                if current is None:
                    current = self.catalog.get_module_info(target).version
                if not version_compare(current, edge.version, edge.operator):
                    error = f"{target} {edge.operator} {_display_version(edge.version)}"

            if error:
                errors.append(f"Failed module dependency: {name} requires {error}")

        return errors
