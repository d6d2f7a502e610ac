"""Scan configuration loading for Entroscan.

Configuration comes from an optional YAML file merged with CLI
overrides. Anything that fails validation is reported as a
ConfigurationError before a single file is opened.
"""

from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from entroscan.core.errors import ConfigurationError
from entroscan.models.config import ScanConfig


def _format_validation_errors(exc: ValidationError) -> list[str]:
    """Flatten pydantic errors into 'field: message' strings."""
    errors = []
    for err in exc.errors():
        location = ".".join(str(part) for part in err["loc"]) or "config"
        errors.append(f"{location}: {err['msg']}")
    return errors


def read_config_file(path: Path) -> dict[str, Any]:
    """Read a YAML configuration file into a dict.

    Args:
        path: Path to the YAML file

    Returns:
        Mapping of option names to values

    Raises:
        ConfigurationError: If the file is missing, unreadable or not a mapping
    """
    try:
        with open(path, encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigurationError(f"Cannot read configuration file {path}: {e}")

    try:
        data = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"YAML parse error in {path}: {e}")

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigurationError(f"Configuration file {path} must contain a mapping")

    # Accept hyphenated keys as written on the command line
    return {str(key).replace("-", "_"): value for key, value in data.items()}


def build_config(data: dict[str, Any]) -> ScanConfig:
    """Validate a mapping into a ScanConfig.

    Raises:
        ConfigurationError: If any option is unknown or out of range
    """
    try:
        return ScanConfig(**data)
    except ValidationError as e:
        errors = _format_validation_errors(e)
        locations = [err["loc"] for err in e.errors() if err["loc"]]
        first_field = str(locations[0][0]) if locations else None
        raise ConfigurationError(
            f"Invalid scan configuration: {'; '.join(errors)}",
            field=first_field,
            errors=errors,
        )


def load_config(path: Path | None = None, **overrides: Any) -> ScanConfig:
    """Load configuration from a file and apply overrides.

    Overrides whose value is None are ignored so that unset CLI options
    fall through to the file or the model defaults.

    Args:
        path: Optional YAML configuration file
        **overrides: Option values taking precedence over the file

    Returns:
        Validated ScanConfig
    """
    data: dict[str, Any] = read_config_file(path) if path else {}
    for key, value in overrides.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)) and not value:
            continue
        data[key] = list(value) if isinstance(value, tuple) else value
    return build_config(data)
