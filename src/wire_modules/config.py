"""Module system configuration.

Apps decide where modules live and where state is stored; the library only
consumes the result. Configuration can be built directly or loaded from the
[modules] table of a TOML file:

    [modules]
    module_paths = ["wire/modules", "site/modules"]
    core_modules_path = "wire/modules"
    registry_path = "site/assets/modules.json"
    permissions_path = "site/assets/permissions.json"
    system_version = "3.0.229"
"""

import platform
import tomllib
from pathlib import Path

from pydantic import BaseModel
from pydantic import ConfigDict
from pydantic import Field

from .utils import DEFAULT_MODULE_SUFFIX


class ModulesConfig(BaseModel):
    """Configuration for the module catalog and installer."""

    model_config = ConfigDict(frozen=True)

    # Directories scanned for module files, lowest precedence first
    module_paths: list[Path] = Field(default_factory=list)
    # Modules under this path are never deleted from disk
    core_modules_path: Path | None = None

    # None keeps state in memory only
    registry_path: Path | None = None
    permissions_path: Path | None = None

    # Versions reported by the "ProcessWire" and "PHP" pseudo-modules
    system_version: str = "3.0.0"
    php_version: str = "8.1.0"

    module_suffix: str = DEFAULT_MODULE_SUFFIX

    @property
    def runtime_versions(self) -> dict[str, str]:
        """Versions of the pseudo-modules that stand for the runtime environment."""
        return {
            "ProcessWire": self.system_version,
            "PHP": self.php_version,
            "Python": platform.python_version(),
        }

    @classmethod
    def from_toml(cls, path: Path) -> "ModulesConfig":
        """
        Load configuration from the [modules] table of a TOML file.

        Relative paths are resolved against the TOML file's directory.

        Raises:
            FileNotFoundError: If the file doesn't exist
            tomllib.TOMLDecodeError: If invalid TOML
        """
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")

        with open(path, "rb") as f:
            data = tomllib.load(f).get("modules", {})

        base = path.parent

        def resolve(value: str | None) -> Path | None:
            if value is None:
                return None
            p = Path(value).expanduser()
            return p if p.is_absolute() else base / p

        return cls(
            module_paths=[resolve(p) for p in data.get("module_paths", [])],
            core_modules_path=resolve(data.get("core_modules_path")),
            registry_path=resolve(data.get("registry_path")),
            permissions_path=resolve(data.get("permissions_path")),
            system_version=data.get("system_version", "3.0.0"),
            php_version=data.get("php_version", "8.1.0"),
            module_suffix=data.get("module_suffix", DEFAULT_MODULE_SUFFIX),
        )
