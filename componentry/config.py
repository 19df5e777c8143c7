"""
Config system - Layered configuration for the component manager.

Merge precedence (later overrides earlier):
defaults < config files (YAML/JSON) < .env file < environment variables < overrides
"""

from typing import Any, Dict, List, Optional
from dataclasses import dataclass, field, fields
from pathlib import Path
import json
import os

from dotenv import dotenv_values

from .faults import ConfigError


DEFAULT_RESERVED_IDS = ["core", "admin", "system", "settings", "components", "all"]

_LIST_FIELDS = ("reserved_ids", "manifests")


@dataclass
class ManagerConfig:
    """
    Typed settings for the registry, loader and bootstrap.

    Attributes:
        trusted_dir: Directory every component locator must resolve inside
        reserved_ids: Ids that can never be registered
        default_priority: Priority merged into descriptors that omit one
        settings_namespace: Key prefix for persisted component settings
        store_path: JSON/YAML file for FileStore; in-memory store when None
        entry_point_group: Entry-point group scanned during bootstrap
        manifests: Descriptor manifest files registered during bootstrap
        debug: Log every loader step at INFO instead of DEBUG
    """

    trusted_dir: str = "."
    reserved_ids: List[str] = field(default_factory=lambda: list(DEFAULT_RESERVED_IDS))
    default_priority: int = 10
    settings_namespace: str = "componentry"
    store_path: Optional[str] = None
    entry_point_group: str = "componentry.components"
    manifests: List[str] = field(default_factory=list)
    debug: bool = False

    @property
    def trusted_path(self) -> Path:
        return Path(self.trusted_dir).expanduser().resolve()


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources.

    Manager settings live under the ``manager`` section:

        manager:
          trusted_dir: ./components
          reserved_ids: [core, admin]

    or, as environment variables, ``COMPONENTRY_MANAGER__TRUSTED_DIR``.
    """

    def __init__(self, env_prefix: str = "COMPONENTRY_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[List[str]] = None,
        env_prefix: str = "COMPONENTRY_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        use_environ: bool = True,
    ) -> "ConfigLoader":
        """
        Load configuration with the documented merge strategy.

        Args:
            paths: Config file paths (.yaml/.yml/.json)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)
            use_environ: Read os.environ (disabled in tests)

        Returns:
            Configured ConfigLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        for path in paths or []:
            loader._load_file(Path(path))

        if env_file:
            loader._load_env_file(env_file)

        if use_environ:
            loader._load_from_env()

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_file(self, path: Path):
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        if path.suffix == ".json":
            self._load_json_file(path)
        elif path.suffix in (".yaml", ".yml"):
            self._load_yaml_file(path)
        else:
            raise ConfigError(f"Unsupported config format: {path.suffix}")

    def _load_json_file(self, path: Path):
        """Load config from JSON file."""
        with open(path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise ConfigError(f"Invalid JSON in {path}: {e}") from e
        if data:
            self._merge_dict(self.config_data, data)

    def _load_yaml_file(self, path: Path):
        """Load config from YAML file."""
        import yaml
        with open(path) as f:
            try:
                data = yaml.safe_load(f)
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid YAML in {path}: {e}") from e
        if data:
            self._merge_dict(self.config_data, data)

    def _load_env_file(self, path: str):
        """Load prefixed keys from a .env file."""
        env_path = Path(path)
        if not env_path.exists():
            return

        for key, value in dotenv_values(env_path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _load_from_env(self):
        """Load config from environment variables."""
        for key, value in os.environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert COMPONENTRY_MANAGER__TRUSTED_DIR to nested dict."""
        key = key[len(self.env_prefix):]
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes", "on"):
            return True
        if value.lower() in ("false", "no", "off"):
            return False

        try:
            if "." in value:
                return float(value)
            return int(value)
        except ValueError:
            pass

        if value.startswith(("{", "[")):
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                pass

        return value

    def _merge_dict(self, target: dict, source: dict):
        """Deep merge source into target."""
        for key, value in source.items():
            if key in target and isinstance(target[key], dict) and isinstance(value, dict):
                self._merge_dict(target[key], value)
            else:
                target[key] = value

    def manager_section(self) -> Dict[str, Any]:
        """The raw ``manager`` section, or an empty dict."""
        section = self.config_data.get("manager") or {}
        if not isinstance(section, dict):
            raise ConfigError("Config section 'manager' must be a mapping")
        return dict(section)

    def get_manager_config(self) -> ManagerConfig:
        """
        Build the typed manager configuration.

        Unknown keys are ignored. List fields also accept comma-separated
        strings, which is how they arrive from environment variables.

        Raises:
            ConfigError: On invalid values
        """
        known = {f.name for f in fields(ManagerConfig)}
        kwargs = {
            name: self._coerce_field(name, value)
            for name, value in self.manager_section().items()
            if name in known
        }
        return ManagerConfig(**kwargs)

    def _coerce_field(self, name: str, value: Any) -> Any:
        if name in _LIST_FIELDS:
            if isinstance(value, str):
                return [item.strip() for item in value.split(",") if item.strip()]
            if isinstance(value, (list, tuple)):
                return [str(item) for item in value]
            raise ConfigError(f"Config field '{name}' must be a list or a comma-separated string")

        if name == "default_priority":
            if isinstance(value, bool) or not isinstance(value, int):
                raise ConfigError(
                    f"Config field 'default_priority' must be an integer, got {type(value).__name__}"
                )
            return value

        if name == "debug":
            if not isinstance(value, bool):
                raise ConfigError(f"Config field 'debug' must be a boolean, got {type(value).__name__}")
            return value

        if value is None and name == "store_path":
            return None

        if value is None or isinstance(value, (dict, list, tuple)):
            raise ConfigError(f"Config field '{name}' must be a string, got {type(value).__name__}")
        return str(value)
