"""Configuration system for progpipe.

This module implements the configuration schema using Pydantic for
validation, with support for environment variable resolution and fail-fast
validation with actionable error messages. Every setting has a default, so
running without a configuration file is the common case; command-line flags
override file values.
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Annotated, Final

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from progpipe.core.calculation import RateConvention

# Regular expression pattern for environment variable references
# Matches ${VARIABLE_NAME} syntax where VARIABLE_NAME can contain letters, digits, and underscores
ENV_VAR_PATTERN: Final[re.Pattern[str]] = re.compile(r"\$\{([A-Z0-9_]+)\}")


class EstimationConfig(BaseModel):
    """Configuration for the progress model."""

    rate_convention: Annotated[
        RateConvention,
        Field(
            description="Treat movement away from the goal as progress (magnitude) or as regression (signed)",
        ),
    ] = RateConvention.MAGNITUDE


class DisplayConfig(BaseModel):
    """Configuration for the status line renderer."""

    message: Annotated[
        str | None,
        Field(
            description="Header line printed above every status line",
        ),
    ] = None
    verbose: Annotated[
        bool,
        Field(
            description="Print the remaining time as days, hours, minutes and seconds",
        ),
    ] = False
    debug: Annotated[
        bool,
        Field(
            description="Print every internal value on each update",
        ),
    ] = False
    timestamp_format: Annotated[
        str,
        Field(
            min_length=1,
            description="strftime format for the ETC timestamp",
        ),
    ] = "%Y-%m-%d %H:%M:%S"

    @field_validator("message", mode="after")
    @classmethod
    def normalize_message(cls, v: str | None) -> str | None:
        """Treat a blank header message as no message.

        Args:
            v: Header message

        Returns:
            Stripped message, or None if empty
        """
        if v is None:
            return None
        stripped = v.strip()
        return stripped or None


class InputConfig(BaseModel):
    """Configuration for reading samples from the input stream."""

    field: Annotated[
        int | None,
        Field(
            ge=1,
            description="1-based whitespace-delimited column holding the sample",
        ),
    ] = None


class ApplicationConfig(BaseModel):
    """Configuration for application-level settings."""

    log_level: Annotated[
        str,
        Field(
            description="Logging level",
            pattern=r"^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$",
        ),
    ] = "WARNING"
    syslog_enabled: Annotated[
        bool,
        Field(
            description="Enable syslog integration",
        ),
    ] = False


class MainConfig(BaseModel):
    """Main application configuration schema.

    Top-level configuration container aggregating all configuration sections:
    - estimation: Progress model behaviour
    - display: Status line rendering
    - input: Sample extraction from the input stream
    - application: Application-level settings
    """

    estimation: Annotated[
        EstimationConfig,
        Field(description="Progress model configuration"),
    ] = EstimationConfig()
    display: Annotated[
        DisplayConfig,
        Field(description="Status line configuration"),
    ] = DisplayConfig()
    input: Annotated[
        InputConfig,
        Field(description="Input stream configuration"),
    ] = InputConfig()
    application: Annotated[
        ApplicationConfig,
        Field(description="Application-level configuration"),
    ] = ApplicationConfig()


class EnvironmentVariableError(Exception):
    """Exception raised when environment variable resolution fails."""


class ConfigurationError(Exception):
    """Exception raised when configuration loading or validation fails.

    This exception provides detailed, actionable error messages for configuration
    issues including file not found, YAML parsing errors, and validation failures.
    """


def resolve_env_var(value: str) -> str:
    """Resolve environment variable references in a string value.

    Parses ${VARIABLE_NAME} syntax and replaces with environment variable values.

    Raises:
        EnvironmentVariableError: If a referenced environment variable is missing

    Examples:
        >>> os.environ["JOB_NAME"] = "backup"
        >>> resolve_env_var("Copying ${JOB_NAME}")
        'Copying backup'
    """

    def replace_match(match: re.Match[str]) -> str:
        var_name = match.group(1)
        env_value = os.environ.get(var_name)

        if env_value is None:
            msg = f"Required environment variable '{var_name}' is not set."
            raise EnvironmentVariableError(msg)

        return env_value

    return ENV_VAR_PATTERN.sub(replace_match, value)


def resolve_env_vars_in_dict(data: Mapping[str, object]) -> dict[str, object]:
    """Recursively resolve environment variables in a dictionary.

    Traverses nested dictionaries and lists, resolving environment variable
    references in string values. Non-string values are preserved as-is.

    Raises:
        EnvironmentVariableError: If a referenced environment variable is missing
    """
    result: dict[str, object] = {}

    for key, value in data.items():
        if isinstance(value, str):
            result[key] = resolve_env_var(value)
        elif isinstance(value, dict):
            # YAML data is untyped at load time; validated by Pydantic after resolution
            result[key] = resolve_env_vars_in_dict(value)  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
        elif isinstance(value, list):
            resolved_list: list[object] = []
            for item in value:  # pyright: ignore[reportUnknownVariableType]  # YAML list items
                if isinstance(item, str):
                    resolved_list.append(resolve_env_var(item))
                elif isinstance(item, dict):
                    resolved_list.append(resolve_env_vars_in_dict(item))  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
                else:
                    resolved_list.append(item)  # pyright: ignore[reportUnknownArgumentType]  # YAML primitives
            result[key] = resolved_list
        else:
            result[key] = value

    return result


def format_validation_error(error: ValidationError, config_path: Path | None) -> str:
    """Format Pydantic validation errors with field-level diagnostics."""
    error_lines = ["Configuration validation failed:", ""]
    for item in error.errors():
        field_path = " → ".join(str(loc) for loc in item["loc"])
        error_lines.append(f"  Field: {field_path}")
        error_lines.append(f"  Error: {item['msg']}")
        error_lines.append(f"  Type: {item['type']}")
        error_lines.append("")

    if config_path is not None:
        error_lines.append(f"Configuration file: {config_path}")
    error_lines.append("Please fix the above errors and try again.")
    return "\n".join(error_lines)


def load_config(config_path: Path | None = None) -> MainConfig:
    """Load and validate configuration from a YAML file.

    Args:
        config_path: Path to a YAML configuration file, or None for defaults

    Returns:
        Validated MainConfig instance

    Raises:
        ConfigurationError: If the file cannot be loaded, references a missing
            environment variable, or fails validation
    """
    if config_path is None:
        return MainConfig()

    if not config_path.exists():
        msg = (
            f"Configuration file not found: {config_path}\n"
            f"Please create a configuration file at this location or omit --config."
        )
        raise ConfigurationError(msg)

    try:
        with config_path.open("r") as f:
            raw_data: object = yaml.safe_load(f)  # pyright: ignore[reportAny]  # YAML boundary
    except yaml.YAMLError as e:
        msg = (
            f"Failed to parse YAML configuration file: {config_path}\n"
            f"YAML parsing error: {e}\n"
            f"Please check the file for syntax errors."
        )
        raise ConfigurationError(msg) from e
    except OSError as e:
        msg = f"Failed to read configuration file: {config_path}\nError: {e}\nPlease check file permissions."
        raise ConfigurationError(msg) from e

    # An empty file means "all defaults"
    if raw_data is None:
        return MainConfig()

    if not isinstance(raw_data, dict):
        msg = (
            f"Invalid configuration file format: {config_path}\n"
            f"Expected YAML dictionary at root level, got: {type(raw_data).__name__}\n"
            f"Configuration file must contain key-value pairs."
        )
        raise ConfigurationError(msg)

    try:
        resolved_data = resolve_env_vars_in_dict(raw_data)  # pyright: ignore[reportUnknownArgumentType]  # YAML boundary
    except EnvironmentVariableError as e:
        msg = (
            f"Environment variable resolution failed in: {config_path}\n"
            f"{e}\n"
            f"Set the required environment variable before starting progpipe."
        )
        raise ConfigurationError(msg) from e

    try:
        return MainConfig.model_validate(resolved_data)
    except ValidationError as e:
        raise ConfigurationError(format_validation_error(e, config_path)) from e


def apply_overrides(config: MainConfig, overrides: Mapping[str, Mapping[str, object]]) -> MainConfig:
    """Return a validated copy of the configuration with CLI overrides applied.

    Only overrides whose value is not None are applied, so unset flags keep
    the file (or default) value.

    Args:
        config: Base configuration
        overrides: Section name to field name to value

    Returns:
        New validated MainConfig

    Raises:
        ConfigurationError: If an override fails validation

    Examples:
        >>> apply_overrides(MainConfig(), {"input": {"field": 2}}).input.field
        2
    """
    data = config.model_dump()
    for section, values in overrides.items():
        section_data = data.setdefault(section, {})
        for key, value in values.items():
            if value is not None:
                section_data[key] = value

    try:
        return MainConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(format_validation_error(e, None)) from e
