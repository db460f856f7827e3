"""Configuration loader for modelstates.

Supported sources, in discovery order:

1. An explicit path passed to :func:`load_config`.
2. ``MODELSTATES_CONFIG_PATH``, pointing at a ``kind: Config`` YAML manifest or a TOML file.
3. ``pyproject.toml`` with a ``[tool.modelstates]`` table, searched from the
   working directory upwards.
4. Built-in defaults.

``MODELSTATES_*`` environment variables override file values.

The loader runs before logging is configured (logging reads its settings
from here), so it reports problems by raising instead of logging.
"""

from __future__ import annotations

import os
import re
import tomllib
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError as PydanticValidationError

from modelstates.kernel.config.models import LoggingConfig, ModelStatesConfig
from modelstates.kernel.exceptions import ConfigurationError

_TRUTHY_VALUES = frozenset({"true", "1", "yes", "on", "enabled"})
_FALSY_VALUES = frozenset({"false", "0", "no", "off", "disabled"})

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")

_active_config: ModelStatesConfig | None = None


def _parse_bool_env(value: str) -> bool:
    """Parse a boolean from an environment variable value.

    Raises
    ------
    ValueError
        If value is not a recognized boolean string
    """
    normalized = value.lower().strip()
    if normalized in _TRUTHY_VALUES:
        return True
    if normalized in _FALSY_VALUES:
        return False
    expected = sorted(_TRUTHY_VALUES | _FALSY_VALUES)
    raise ValueError(f"Invalid boolean value: {value!r}. Expected one of: {expected}")


class ConfigLoader:
    """Loads modelstates configuration from YAML, TOML or pyproject.toml."""

    def load(self, path: str | Path | None = None) -> ModelStatesConfig:
        """Load configuration, falling back to defaults when no file is found.

        Parameters
        ----------
        path : str | Path | None
            Explicit config file. Must exist when given.

        Returns
        -------
        ModelStatesConfig
            Parsed configuration with environment overrides applied
        """
        config_path = self._find_config_file(path)
        data: dict[str, Any] = {}
        if config_path is not None:
            data = self._read(config_path)
        return self._parse_config(self._substitute_env_vars(data))

    def _read(self, config_path: Path) -> dict[str, Any]:
        if config_path.suffix in (".yaml", ".yml"):
            return self._read_yaml(config_path)
        return self._read_toml(config_path)

    def _read_yaml(self, config_path: Path) -> dict[str, Any]:
        with config_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

        if not isinstance(data, dict):
            raise ConfigurationError(
                str(config_path), f"expected a mapping, got {type(data).__name__}"
            )
        if data.get("kind") != "Config":
            raise ConfigurationError(
                str(config_path), f"expected 'kind: Config', got 'kind: {data.get('kind')}'"
            )
        spec = data.get("spec") or {}
        if not isinstance(spec, dict):
            raise ConfigurationError(str(config_path), "'spec' must be a mapping")
        return spec

    def _read_toml(self, config_path: Path) -> dict[str, Any]:
        with config_path.open("rb") as f:
            data = tomllib.load(f)
        if "tool" in data and "modelstates" in data["tool"]:
            return data["tool"]["modelstates"]
        if config_path.name == "pyproject.toml":
            return {}
        return data

    def _find_config_file(self, path: str | Path | None) -> Path | None:
        if path:
            config_path = Path(path)
            if not config_path.exists():
                raise ConfigurationError(str(config_path), "configuration file not found")
            return config_path

        if env_path := os.getenv("MODELSTATES_CONFIG_PATH"):
            config_path = Path(env_path)
            if not config_path.exists():
                raise ConfigurationError(
                    "MODELSTATES_CONFIG_PATH", f"file not found: {config_path}"
                )
            return config_path

        current = Path.cwd()
        while True:
            pyproject = current / "pyproject.toml"
            if pyproject.exists():
                with pyproject.open("rb") as f:
                    data = tomllib.load(f)
                if "modelstates" in data.get("tool", {}):
                    return pyproject
            if current == current.parent:
                return None
            current = current.parent

    def _substitute_env_vars(self, data: Any) -> Any:
        """Recursively replace ``${VAR}`` placeholders; unknown variables are kept."""
        if isinstance(data, str):

            def replacer(match: re.Match[str]) -> str:
                return os.environ.get(match.group(1), match.group(0))

            return _ENV_VAR_PATTERN.sub(replacer, data)
        if isinstance(data, dict):
            return {key: self._substitute_env_vars(value) for key, value in data.items()}
        if isinstance(data, list):
            return [self._substitute_env_vars(item) for item in data]
        return data

    def _parse_config(self, data: dict[str, Any]) -> ModelStatesConfig:
        auto_discover = data.get("auto_discover_modules", True)
        allow_import_paths = data.get("allow_import_paths", True)

        if env_discover := os.getenv("MODELSTATES_AUTO_DISCOVER"):
            auto_discover = self._env_bool("MODELSTATES_AUTO_DISCOVER", env_discover)
        if env_paths := os.getenv("MODELSTATES_ALLOW_IMPORT_PATHS"):
            allow_import_paths = self._env_bool("MODELSTATES_ALLOW_IMPORT_PATHS", env_paths)

        try:
            return ModelStatesConfig(
                logging=self._parse_logging_config(data.get("logging") or {}),
                auto_discover_modules=auto_discover,
                allow_import_paths=allow_import_paths,
            )
        except PydanticValidationError as e:
            raise ConfigurationError("modelstates", str(e)) from e

    def _parse_logging_config(self, logging_data: dict[str, Any]) -> LoggingConfig:
        """Parse the logging section; MODELSTATES_LOG_* variables take precedence."""
        level = str(logging_data.get("level", "INFO")).upper()
        format_type = str(logging_data.get("format", "structured")).lower()
        output_file = logging_data.get("output_file")
        use_color = logging_data.get("use_color", True)

        if env_level := os.getenv("MODELSTATES_LOG_LEVEL"):
            level = env_level.upper()
        if env_format := os.getenv("MODELSTATES_LOG_FORMAT"):
            format_type = env_format.lower()
        if env_file := os.getenv("MODELSTATES_LOG_FILE"):
            output_file = env_file
        if env_color := os.getenv("MODELSTATES_LOG_COLOR"):
            use_color = self._env_bool("MODELSTATES_LOG_COLOR", env_color)

        if level not in {"TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ConfigurationError("logging.level", f"unknown level {level!r}")
        if format_type not in {"console", "json", "structured", "rich"}:
            raise ConfigurationError("logging.format", f"unknown format {format_type!r}")

        return LoggingConfig(
            level=level,  # type: ignore[arg-type]
            format=format_type,  # type: ignore[arg-type]
            output_file=output_file,
            use_color=bool(use_color),
            include_timestamp=bool(logging_data.get("include_timestamp", True)),
            backtrace=bool(logging_data.get("backtrace", True)),
            diagnose=bool(logging_data.get("diagnose", True)),
        )

    @staticmethod
    def _env_bool(name: str, value: str) -> bool:
        try:
            return _parse_bool_env(value)
        except ValueError as e:
            raise ConfigurationError(name, str(e)) from e


def load_config(path: str | Path | None = None) -> ModelStatesConfig:
    """Load configuration without touching the active configuration."""
    return ConfigLoader().load(path)


def get_config() -> ModelStatesConfig:
    """Return the active configuration, loading it on first access."""
    global _active_config
    if _active_config is None:
        _active_config = load_config()
    return _active_config


def set_config(config: ModelStatesConfig) -> None:
    """Replace the active configuration."""
    global _active_config
    _active_config = config


def clear_config_cache() -> None:
    """Forget the active configuration so the next access reloads it."""
    global _active_config
    _active_config = None
