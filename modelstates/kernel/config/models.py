"""Configuration data models for modelstates."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


@dataclass(frozen=True, slots=True)
class LoggingConfig:
    """Logging configuration for modelstates.

    Attributes
    ----------
    level : str, default="INFO"
        Log level (TRACE, DEBUG, INFO, WARNING, ERROR, CRITICAL)
    format : str, default="structured"
        Output format (console, json, structured, rich)
    output_file : str | None, default=None
        Optional file path to write JSON logs to
    use_color : bool, default=True
        Use ANSI color codes (auto-disabled for non-TTY)
    include_timestamp : bool, default=True
        Include timestamp in log output
    backtrace : bool, default=True
        Enable extended tracebacks
    diagnose : bool, default=True
        Show variable values in tracebacks (disable in production)

    Examples
    --------
    TOML configuration:

    ```toml
    [tool.modelstates.logging]
    level = "DEBUG"
    format = "rich"
    ```

    Environment variable overrides:

    ```bash
    export MODELSTATES_LOG_LEVEL=DEBUG
    export MODELSTATES_LOG_FORMAT=json
    export MODELSTATES_LOG_FILE=/var/log/app/states.log
    ```
    """

    level: Literal["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"
    format: Literal["console", "json", "structured", "rich"] = "structured"
    output_file: str | None = None
    use_color: bool = True
    include_timestamp: bool = True
    backtrace: bool = True
    diagnose: bool = True


class ModelStatesConfig(BaseModel):
    """Complete modelstates configuration.

    Attributes
    ----------
    logging : LoggingConfig
        Logging sinks and level
    auto_discover_modules : bool, default=True
        Import the modules that sit alongside a state family before
        collecting its concrete states. When disabled, only states already
        imported (or explicitly registered) are found.
    allow_import_paths : bool, default=True
        Accept dotted import paths (``"app.states.Paid"``) as state and
        transition identifiers.
    """

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    auto_discover_modules: bool = True
    allow_import_paths: bool = True
