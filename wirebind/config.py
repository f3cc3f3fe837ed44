"""
Config system - Layered typed configuration with validation.

Merge order (later overrides earlier):
1. AppConfig defaults
2. Config files (YAML or JSON, glob patterns supported)
3. .env file (WIREBIND_* keys only)
4. Environment variables (WIREBIND_* prefix)
5. Manual overrides
"""

from typing import Any, Dict, Optional, Type, TypeVar, get_args, get_origin, get_type_hints
from dataclasses import MISSING, dataclass, field, fields, is_dataclass
from pathlib import Path
import json
import os
import types

import yaml
from dotenv import dotenv_values

from .faults import ConfigFault


C = TypeVar("C")


@dataclass
class AppConfig:
    """Application settings."""
    app_name: str = "wirebind"
    host: str = "127.0.0.1"
    port: int = 8080
    fail_fast: bool = True
    server_header: str = "wirebind"
    default_headers: Dict[str, str] = field(default_factory=dict)
    log_level: str = "info"


class ConfigLoader:
    """
    Loads and merges configuration from multiple sources.
    """

    def __init__(self, env_prefix: str = "WIREBIND_"):
        self.env_prefix = env_prefix
        self.config_data: Dict[str, Any] = {}

    @classmethod
    def load(
        cls,
        paths: Optional[list[str]] = None,
        env_prefix: str = "WIREBIND_",
        env_file: Optional[str] = None,
        overrides: Optional[Dict[str, Any]] = None,
        *,
        environ: Optional[Dict[str, str]] = None,
    ) -> "ConfigLoader":
        """
        Load configuration from multiple sources with proper merge strategy.

        Args:
            paths: List of config file paths (glob patterns supported)
            env_prefix: Prefix for environment variables
            env_file: Path to .env file
            overrides: Manual overrides (highest precedence)
            environ: Environment mapping (defaults to os.environ)

        Returns:
            Configured ConfigLoader instance
        """
        loader = cls(env_prefix=env_prefix)

        for pattern in paths or []:
            loader._load_from_files(pattern)

        if env_file:
            loader._load_env_file(env_file)

        loader._load_from_env(os.environ if environ is None else environ)

        if overrides:
            loader._merge_dict(loader.config_data, overrides)

        return loader

    def _load_from_files(self, pattern: str):
        """Load config from JSON or YAML files."""
        from glob import glob

        matches = sorted(glob(pattern))
        if not matches and not any(ch in pattern for ch in "*?["):
            raise ConfigFault(f"Config file not found: {pattern}", key=pattern)

        for path_str in matches:
            path = Path(path_str)
            if path.suffix == ".json":
                self._load_json_file(path)
            elif path.suffix in (".yaml", ".yml"):
                self._load_yaml_file(path)

    def _load_json_file(self, path: Path):
        with open(path) as f:
            data = json.load(f)
        if data:
            self._merge_dict(self.config_data, data)

    def _load_yaml_file(self, path: Path):
        with open(path) as f:
            data = yaml.safe_load(f)
        if data:
            if not isinstance(data, dict):
                raise ConfigFault(f"Config file {path} must contain a mapping", key=str(path))
            self._merge_dict(self.config_data, data)

    def _load_env_file(self, path: str):
        """Load WIREBIND_* keys from a .env file."""
        env_path = Path(path)
        if not env_path.exists():
            return

        for key, value in dotenv_values(env_path).items():
            if value is not None and key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _load_from_env(self, environ):
        for key, value in environ.items():
            if key.startswith(self.env_prefix):
                self._set_nested(key, value)

    def _set_nested(self, key: str, value: str):
        """Convert WIREBIND_DEFAULT_HEADERS__X_APP to nested dict."""
        key = key[len(self.env_prefix):]

        # Double underscore separates nesting levels
        parts = key.lower().split("__")

        current = self.config_data
        for part in parts[:-1]:
            if not isinstance(current.get(part), dict):
                current[part] = {}
            current = current[part]

        current[parts[-1]] = self._parse_value(value)

    def _parse_value(self, value: str) -> Any:
        """Parse string value to appropriate type."""
        if value.lower() in ("true", "yes"):
            return True
        if value.lower() in ("false", "no"):
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

    def get(self, path: str, default: Any = None) -> Any:
        """Get config value by dot-separated path."""
        current = self.config_data
        for part in path.split("."):
            if isinstance(current, dict) and part in current:
                current = current[part]
            else:
                return default
        return current

    def get_config(self, config_class: Type[C] = AppConfig) -> C:
        """Instantiate and validate a dataclass config from the merged data."""
        if not is_dataclass(config_class):
            raise TypeError(f"{config_class.__name__} must be a dataclass")

        hints = get_type_hints(config_class)
        kwargs = {}

        for field_info in fields(config_class):
            name = field_info.name
            expected = hints.get(name, field_info.type)

            if name in self.config_data:
                value = self._coerce(self.config_data[name], expected)
                if not self._check_type(value, expected):
                    raise ConfigFault(
                        f"Config field '{name}' expected {getattr(expected, '__name__', expected)}, "
                        f"got {type(value).__name__}",
                        key=name,
                    )
                kwargs[name] = value
            elif field_info.default is MISSING and field_info.default_factory is MISSING:
                raise ConfigFault(f"Required config field '{name}' not provided", key=name)

        return config_class(**kwargs)

    def _coerce(self, value: Any, expected: Any) -> Any:
        # Env values like "8080.0" or 1 for a str field
        if expected is str and isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        if expected is int and isinstance(value, float) and value.is_integer():
            return int(value)
        if expected is bool and not isinstance(value, bool) and value in (0, 1):
            return bool(value)
        return value

    def _check_type(self, value: Any, expected_type: Any) -> bool:
        origin = get_origin(expected_type)
        if origin is types.UnionType or str(origin) == "typing.Union":
            if value is None:
                return True
            return any(self._check_type(value, a) for a in get_args(expected_type) if a is not type(None))

        if origin:
            return isinstance(value, origin)

        if expected_type is int and isinstance(value, bool):
            return False

        try:
            return isinstance(value, expected_type)
        except TypeError:
            return True

    def to_dict(self) -> dict:
        return self.config_data.copy()


def load_config(
    paths: Optional[list[str]] = None,
    env_file: Optional[str] = None,
    overrides: Optional[Dict[str, Any]] = None,
) -> AppConfig:
    """Shortcut: load and validate an :class:`AppConfig`."""
    return ConfigLoader.load(paths=paths, env_file=env_file, overrides=overrides).get_config(AppConfig)
