# tests/core/test_config.py
"""Tests for configuration schema and loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError


class TestSettingsSchema:
    """Pydantic model defaults and validation."""

    def test_defaults(self) -> None:
        from nodeflow.core.config import NodeflowSettings

        settings = NodeflowSettings()

        assert settings.logging.level == "INFO"
        assert settings.logging.json_output is False
        assert settings.templates.strict_undefined is False
        assert settings.registry.include_builtins is True
        assert settings.engine.validate_graph is True

    def test_settings_are_frozen(self) -> None:
        from nodeflow.core.config import NodeflowSettings

        settings = NodeflowSettings()

        with pytest.raises(ValidationError):
            settings.logging.level = "DEBUG"  # type: ignore[misc]

    def test_log_level_normalized(self) -> None:
        from nodeflow.core.config import LoggingSettings

        assert LoggingSettings(level="debug").level == "DEBUG"

    def test_unknown_log_level_rejected(self) -> None:
        from nodeflow.core.config import LoggingSettings

        with pytest.raises(ValidationError):
            LoggingSettings(level="LOUD")

    def test_unknown_section_rejected(self) -> None:
        from nodeflow.core.config import NodeflowSettings

        with pytest.raises(ValidationError):
            NodeflowSettings(database={"url": "sqlite://"})  # type: ignore[call-arg]


class TestLoadSettings:
    """Dynaconf-backed loading."""

    def test_load_from_yaml(self, tmp_path: Path) -> None:
        from nodeflow.core.config import load_settings

        config_file = tmp_path / "settings.yaml"
        config_file.write_text("""
logging:
  level: WARNING
  json_output: true
templates:
  strict_undefined: true
""")

        settings = load_settings(config_file)

        assert settings.logging.level == "WARNING"
        assert settings.logging.json_output is True
        assert settings.templates.strict_undefined is True
        assert settings.engine.validate_graph is True

    def test_load_with_env_override(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        from nodeflow.core.config import load_settings

        config_file = tmp_path / "settings.yaml"
        config_file.write_text("""
logging:
  level: INFO
""")
        monkeypatch.setenv("NODEFLOW_LOGGING__LEVEL", "ERROR")

        settings = load_settings(config_file)

        assert settings.logging.level == "ERROR"

    def test_missing_file_raises(self, tmp_path: Path) -> None:
        from nodeflow.core.config import load_settings

        with pytest.raises(FileNotFoundError):
            load_settings(tmp_path / "absent.yaml")

    def test_invalid_values_raise(self, tmp_path: Path) -> None:
        from nodeflow.core.config import load_settings

        config_file = tmp_path / "settings.yaml"
        config_file.write_text("""
engine:
  validate_graph: "definitely"
""")

        with pytest.raises(ValidationError):
            load_settings(config_file)
