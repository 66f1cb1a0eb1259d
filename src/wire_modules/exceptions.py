"""Module installer exceptions.

Install aborts raise; uninstall signals through its return value. Errors from
cascading steps (permissions, auto-install, auto-uninstall) never reach these
classes' callers, they are logged instead.
"""


class ModuleError(Exception):
    """Base exception for module operations."""

    def __init__(self, message: str, context: dict | None = None):
        """Initialize with message and optional context.

        Args:
            message: Human-readable error message
            context: Optional dict with additional context (module name, requirements, etc.)
        """
        super().__init__(message)
        self.message = message
        self.context = context or {}


class UnmetDependencyError(ModuleError):
    """Module has requirements that are not installed or have the wrong version."""


class DependencyCycleError(ModuleError):
    """Installing a module led back to a module that is still being installed."""


class ModuleInstallError(ModuleError):
    """Module could not be installed (missing class, registry failure, or its install hook raised)."""


class ModuleDeleteError(ModuleError):
    """Module files can't be removed."""


class DatabaseError(ModuleError):
    """Registry or database layer failure.

    Raised from a module's own install hook it is treated as a soft failure:
    the registry row is kept.
    """
