"""Tests for configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from modelstates.kernel.config import (
    ConfigLoader,
    LoggingConfig,
    ModelStatesConfig,
    clear_config_cache,
    get_config,
    load_config,
    set_config,
)
from modelstates.kernel.exceptions import ConfigurationError

ENV_VARS = (
    "MODELSTATES_CONFIG_PATH",
    "MODELSTATES_LOG_LEVEL",
    "MODELSTATES_LOG_FORMAT",
    "MODELSTATES_LOG_FILE",
    "MODELSTATES_LOG_COLOR",
    "MODELSTATES_AUTO_DISCOVER",
    "MODELSTATES_ALLOW_IMPORT_PATHS",
)


@pytest.fixture(autouse=True)
def isolated(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Run every test from an empty directory with no MODELSTATES_* variables."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def _write(path: Path, content: str) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


# ---------------------------------------------------------------------------
# Sources
# ---------------------------------------------------------------------------


class TestDefaults:
    def test_no_file_gives_defaults(self) -> None:
        config = load_config()
        assert config == ModelStatesConfig()
        assert config.logging == LoggingConfig()
        assert config.auto_discover_modules is True
        assert config.allow_import_paths is True

    def test_pyproject_without_table_is_ignored(self, isolated: Path) -> None:
        _write(isolated / "pyproject.toml", '[project]\nname = "app"\n')
        assert load_config() == ModelStatesConfig()


class TestPyproject:
    """Tests for [tool.modelstates] in pyproject.toml."""

    def test_tool_table(self, isolated: Path) -> None:
        _write(
            isolated / "pyproject.toml",
            "[tool.modelstates]\n"
            "auto_discover_modules = false\n"
            "\n"
            "[tool.modelstates.logging]\n"
            'level = "debug"\n'
            'format = "console"\n',
        )
        config = load_config()
        assert config.auto_discover_modules is False
        assert config.logging.level == "DEBUG"
        assert config.logging.format == "console"

    def test_found_from_a_subdirectory(
        self, isolated: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        _write(isolated / "pyproject.toml", "[tool.modelstates]\nallow_import_paths = false\n")
        nested = isolated / "src" / "app"
        nested.mkdir(parents=True)
        monkeypatch.chdir(nested)
        assert load_config().allow_import_paths is False


class TestExplicitFiles:
    """Tests for explicit paths and MODELSTATES_CONFIG_PATH."""

    def test_yaml_manifest(self, isolated: Path) -> None:
        path = _write(
            isolated / "states.yaml",
            "kind: Config\n"
            "metadata:\n"
            "  name: states\n"
            "spec:\n"
            "  allow_import_paths: false\n"
            "  logging:\n"
            "    format: json\n",
        )
        config = load_config(path)
        assert config.allow_import_paths is False
        assert config.logging.format == "json"

    def test_yaml_without_spec(self, isolated: Path) -> None:
        path = _write(isolated / "states.yml", "kind: Config\n")
        assert load_config(path) == ModelStatesConfig()

    def test_yaml_wrong_kind(self, isolated: Path) -> None:
        path = _write(isolated / "states.yaml", "kind: Pipeline\nspec: {}\n")
        with pytest.raises(ConfigurationError, match="kind: Config"):
            load_config(path)

    def test_yaml_not_a_mapping(self, isolated: Path) -> None:
        path = _write(isolated / "states.yaml", "- a\n- b\n")
        with pytest.raises(ConfigurationError, match="expected a mapping"):
            load_config(path)

    def test_plain_toml_file(self, isolated: Path) -> None:
        path = _write(isolated / "states.toml", "auto_discover_modules = false\n")
        assert load_config(path).auto_discover_modules is False

    def test_missing_explicit_file(self, isolated: Path) -> None:
        with pytest.raises(ConfigurationError, match="not found"):
            load_config(isolated / "missing.toml")

    def test_config_path_variable(self, isolated: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        path = _write(isolated / "conf" / "states.toml", "allow_import_paths = false\n")
        monkeypatch.setenv("MODELSTATES_CONFIG_PATH", str(path))
        assert load_config().allow_import_paths is False

    def test_config_path_variable_missing_file(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MODELSTATES_CONFIG_PATH", "/nonexistent/states.toml")
        with pytest.raises(ConfigurationError, match="MODELSTATES_CONFIG_PATH"):
            load_config()


# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------


class TestEnvironment:
    """Tests for MODELSTATES_* overrides and ${VAR} substitution."""

    def test_logging_overrides(self, isolated: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        _write(isolated / "pyproject.toml", '[tool.modelstates.logging]\nlevel = "INFO"\n')
        monkeypatch.setenv("MODELSTATES_LOG_LEVEL", "warning")
        monkeypatch.setenv("MODELSTATES_LOG_FORMAT", "RICH")
        monkeypatch.setenv("MODELSTATES_LOG_FILE", "/var/log/states.log")
        monkeypatch.setenv("MODELSTATES_LOG_COLOR", "no")

        settings = load_config().logging
        assert settings.level == "WARNING"
        assert settings.format == "rich"
        assert settings.output_file == "/var/log/states.log"
        assert settings.use_color is False

    @pytest.mark.parametrize(("value", "expected"), [("off", False), ("1", True), ("Yes", True)])
    def test_boolean_overrides(
        self, monkeypatch: pytest.MonkeyPatch, value: str, expected: bool
    ) -> None:
        monkeypatch.setenv("MODELSTATES_AUTO_DISCOVER", value)
        monkeypatch.setenv("MODELSTATES_ALLOW_IMPORT_PATHS", value)
        config = load_config()
        assert config.auto_discover_modules is expected
        assert config.allow_import_paths is expected

    def test_invalid_boolean(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("MODELSTATES_AUTO_DISCOVER", "sometimes")
        with pytest.raises(ConfigurationError, match="Invalid boolean value"):
            load_config()

    def test_variable_substitution(self, isolated: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("STATES_LOG_DIR", "/srv/logs")
        path = _write(
            isolated / "states.toml",
            '[logging]\noutput_file = "${STATES_LOG_DIR}/states.log"\nlevel = "${UNSET_VAR}"\n',
        )
        with pytest.raises(ConfigurationError, match="unknown level"):
            load_config(path)

        _write(path, '[logging]\noutput_file = "${STATES_LOG_DIR}/states.log"\n')
        assert load_config(path).logging.output_file == "/srv/logs/states.log"


class TestValidation:
    def test_unknown_format(self, isolated: Path) -> None:
        path = _write(isolated / "states.toml", '[logging]\nformat = "xml"\n')
        with pytest.raises(ConfigurationError, match="unknown format"):
            ConfigLoader().load(path)

    def test_wrong_type(self, isolated: Path) -> None:
        path = _write(isolated / "states.toml", 'auto_discover_modules = "perhaps"\n')
        with pytest.raises(ConfigurationError):
            load_config(path)

    def test_config_is_frozen(self) -> None:
        with pytest.raises(ValidationError):
            ModelStatesConfig().allow_import_paths = False  # type: ignore[misc]


# ---------------------------------------------------------------------------
# Active configuration
# ---------------------------------------------------------------------------


class TestActiveConfig:
    def test_get_config_is_cached(self) -> None:
        clear_config_cache()
        assert get_config() is get_config()

    def test_set_config(self) -> None:
        config = ModelStatesConfig(allow_import_paths=False)
        set_config(config)
        assert get_config() is config

    def test_clear_config_cache_reloads(self, isolated: Path) -> None:
        set_config(ModelStatesConfig(allow_import_paths=False))
        _write(isolated / "pyproject.toml", "[tool.modelstates]\nauto_discover_modules = false\n")
        clear_config_cache()
        config = get_config()
        assert config.allow_import_paths is True
        assert config.auto_discover_modules is False
