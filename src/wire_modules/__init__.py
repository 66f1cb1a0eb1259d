"""wire-modules - Module dependency resolution and install/uninstall orchestration.

Apps inject policy (module paths, storage locations, runtime versions) through
ModulesConfig and the collaborator protocols; the library supplies the
mechanism.
"""

from .catalog import ModuleCatalog
from .config import ModulesConfig
from .discovery import discover_module_files
from .discovery import load_module_class
from .exceptions import DatabaseError
from .exceptions import DependencyCycleError
from .exceptions import ModuleDeleteError
from .exceptions import ModuleError
from .exceptions import ModuleInstallError
from .exceptions import UnmetDependencyError
from .hooks import Hook
from .hooks import HookRegistry
from .installer import ErrorKind
from .installer import InstallOutcome
from .installer import ModulesInstaller
from .module import Fieldtype
from .module import Module
from .notices import Notice
from .notices import NoticeLevel
from .notices import Notices
from .permissions import Permission
from .permissions import PermissionStore
from .protocols import FieldtypeUsageProvider
from .protocols import ModuleCatalogProtocol
from .protocols import PermissionStoreProtocol
from .registry import ModuleRegistry
from .registry import ModuleRegistryEntry
from .resolver import DependencyResolver
from .schema import DependencyEdge
from .schema import InstallOptions
from .schema import ModuleFlags
from .schema import ModuleInfo
from .versions import extract_operator_version
from .versions import format_version
from .versions import version_compare

__all__ = [
    # Module contract
    "Module",
    "Fieldtype",
    # Metadata
    "ModuleInfo",
    "DependencyEdge",
    "ModuleFlags",
    "InstallOptions",
    # Versions
    "format_version",
    "version_compare",
    "extract_operator_version",
    # Catalog and storage
    "ModuleCatalog",
    "ModuleRegistry",
    "ModuleRegistryEntry",
    "PermissionStore",
    "Permission",
    "discover_module_files",
    "load_module_class",
    # Resolution
    "DependencyResolver",
    # Installation
    "ModulesInstaller",
    "InstallOutcome",
    "ErrorKind",
    # Runtime
    "HookRegistry",
    "Hook",
    "Notices",
    "Notice",
    "NoticeLevel",
    # Configuration
    "ModulesConfig",
    # Protocols
    "ModuleCatalogProtocol",
    "FieldtypeUsageProvider",
    "PermissionStoreProtocol",
    # Exceptions
    "ModuleError",
    "UnmetDependencyError",
    "DependencyCycleError",
    "ModuleInstallError",
    "ModuleDeleteError",
    "DatabaseError",
]

__version__ = "0.1.0"
