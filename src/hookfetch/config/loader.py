"""
Configuration file loading.

Loads hookfetch.yaml plus an optional hookfetch.{env}.yaml override and
resolves placeholders.
"""

from collections.abc import Iterator
from pathlib import Path
from typing import Any

import yaml

from hookfetch.config.resolver import resolve_config
from hookfetch.exceptions import ConfigurationError

CONFIG_FILENAME = "hookfetch.yaml"


class Config:
    """Configuration container with dict-like and dot-notation access."""

    def __init__(self, data: dict[str, Any]):
        self.data = data

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value using dot notation."""
        value: Any = self.data
        for k in key.split("."):
            if isinstance(value, dict):
                value = value.get(k)
                if value is None:
                    return default
            else:
                return default
        return value

    def __getitem__(self, key: str) -> Any:
        """Dict-like access: config['key'] or config['nested.key']."""
        if "." in key:
            if key not in self:
                raise KeyError(f"Config key '{key}' not found")
            return self.get(key)
        if key in self.data:
            value = self.data[key]
            if isinstance(value, dict):
                return Config(value)
            return value
        raise KeyError(f"Config key '{key}' not found")

    def __contains__(self, key: str) -> bool:
        value: Any = self.data
        for k in key.split("."):
            if not isinstance(value, dict) or k not in value:
                return False
            value = value[k]
        return True

    def __iter__(self) -> Iterator[str]:
        return iter(self.data)

    def keys(self):
        return self.data.keys()

    def values(self):
        return self.data.values()

    def items(self):
        return self.data.items()

    def validate(self) -> None:
        """Validate the shape of the known top-level sections."""
        errors = []
        for section in ("client", "retry", "transport", "logging"):
            value = self.data.get(section)
            if value is not None and not isinstance(value, dict):
                errors.append(f"Configuration '{section}' must be a mapping, got {type(value).__name__}")
        if errors:
            raise ConfigurationError("\n".join(errors))


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        mark = getattr(e, "problem_mark", None)
        location = f" at line {mark.line + 1}, column {mark.column + 1}" if mark is not None else ""
        raise ConfigurationError(
            f"Error parsing {path.name}{location}:\n  {e}\n  File: {path}",
            details={"path": str(path)},
        ) from e
    if not isinstance(data, dict):
        raise ConfigurationError(
            f"Configuration must be a mapping, got {type(data).__name__}\n  File: {path}",
            details={"path": str(path)},
        )
    return data


def load_config(project_path: Path | None = None, env: str | None = None) -> Config:
    """
    Load hookfetch configuration.

    Args:
        project_path: Directory holding hookfetch.yaml (default: current directory)
        env: Environment name; hookfetch.{env}.yaml is merged over the base file

    Returns:
        Validated Config with placeholders resolved

    Raises:
        FileNotFoundError: hookfetch.yaml does not exist
        ConfigurationError: A file cannot be parsed or has the wrong shape
    """
    if project_path is None:
        project_path = Path.cwd()

    base_config_path = project_path / CONFIG_FILENAME
    if not base_config_path.is_file():
        raise FileNotFoundError(
            f"Configuration file not found: {base_config_path}\n"
            f"  Suggestion: Create a {CONFIG_FILENAME} file in your project root"
        )

    config_data = _read_yaml(base_config_path)

    if env:
        env_config_path = project_path / f"hookfetch.{env}.yaml"
        if env_config_path.exists():
            _merge_dict(config_data, _read_yaml(env_config_path))

    config = Config(resolve_config(config_data, env or "dev"))
    config.validate()
    return config


def _merge_dict(base: dict, override: dict) -> None:
    """Recursively merge override into base."""
    for key, value in override.items():
        if key in base and isinstance(base[key], dict) and isinstance(value, dict):
            _merge_dict(base[key], value)
        else:
            base[key] = value
