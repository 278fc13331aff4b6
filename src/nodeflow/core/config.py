# src/nodeflow/core/config.py
"""
Configuration schema and loading for nodeflow.

Uses Pydantic for validation and Dynaconf for multi-source loading.
Settings are frozen (immutable) after construction.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseModel):
    """Logging output configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    level: LogLevel = Field(default="INFO", description="Root log level")
    json_output: bool = Field(default=False, description="Render log lines as JSON")

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: Any) -> Any:
        if isinstance(v, str):
            return v.upper()
        return v


class TemplateSettings(BaseModel):
    """Expression template configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    strict_undefined: bool = Field(
        default=False,
        description="Fail binding when a template references an undefined variable "
        "(default renders undefined variables as empty text)",
    )


class RegistrySettings(BaseModel):
    """Operation registry configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    include_builtins: bool = Field(default=True, description="Register the built-in operations")
    plugins: list[str] = Field(
        default_factory=list,
        description="Dotted module paths of extra operation plugins to register",
    )


class EngineSettings(BaseModel):
    """Graph construction and execution configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    validate_graph: bool = Field(
        default=True,
        description="Reject cyclic graphs and undeclared port connections at build time",
    )


class NodeflowSettings(BaseModel):
    """Top-level nodeflow configuration."""

    model_config = {"frozen": True, "extra": "forbid"}

    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    templates: TemplateSettings = Field(default_factory=TemplateSettings)
    registry: RegistrySettings = Field(default_factory=RegistrySettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)


def _lower_keys(value: Any) -> Any:
    if isinstance(value, dict):
        return {str(k).lower(): _lower_keys(v) for k, v in value.items()}
    return value


def load_settings(config_path: Path) -> NodeflowSettings:
    """Load settings from YAML file with environment variable overrides.

    Precedence:
    1. Environment variables (NODEFLOW_*) - highest priority
    2. Config file
    3. Defaults from Pydantic schema - lowest priority

    Environment variable format: NODEFLOW_LOGGING__LEVEL for nested keys.

    Raises:
        ValidationError: If configuration fails Pydantic validation
        FileNotFoundError: If config file doesn't exist
    """
    from dynaconf import Dynaconf

    # Dynaconf silently accepts missing files
    if not config_path.exists():
        raise FileNotFoundError(f"Config file not found: {config_path}")

    dynaconf_settings = Dynaconf(
        envvar_prefix="NODEFLOW",
        settings_files=[str(config_path)],
        environments=False,
        load_dotenv=False,
        merge_enabled=True,
    )

    internal_keys = {"LOAD_DOTENV", "ENVIRONMENTS", "SETTINGS_FILES"}
    raw_config = {k: v for k, v in dynaconf_settings.as_dict().items() if k not in internal_keys}
    return NodeflowSettings(**_lower_keys(raw_config))
