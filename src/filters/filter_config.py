"""Filter compiler configuration.

Loads structural limits and defaults from (priority order):
1. Explicit path passed to load_filter_settings()
2. ./dbview-filters.yaml (working directory)
3. Built-in defaults

Environment variables override YAML: DBVIEW_FILTERS_<KEY>.
${VAR} references in YAML values resolve from environment at load time.
"""

import logging
import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, ConfigDict

from src.filters.dialects import SqlDialect

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_FILENAME = "dbview-filters.yaml"
ENV_PREFIX = "DBVIEW_FILTERS_"

_ENV_VAR_PATTERN = re.compile(r"\$\{([^}]+)\}")


class FilterConfigError(Exception):
    """Raised when filter configuration is missing or invalid."""


class FilterSettings(BaseModel):
    """Structural limits and defaults for filter validation and compilation."""

    model_config = ConfigDict(frozen=True)

    max_conditions: int = 50
    max_in_cardinality: int = 1000
    default_sql_dialect: str = "postgres"


def resolve_env_vars(value: str) -> str:
    """Resolve ${VAR} references in a string from environment variables.

    Missing env vars resolve to empty string.
    """
    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), "")

    return _ENV_VAR_PATTERN.sub(_replace, value)


def _read_yaml(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh) or {}
    if not isinstance(data, dict):
        raise FilterConfigError(f"{path} must contain a mapping, got {type(data).__name__}.")
    # Settings may sit at the top level or under a "filters" section
    section = data.get("filters", data) or {}
    if not isinstance(section, dict):
        raise FilterConfigError(f"{path}: 'filters' must be a mapping.")
    return {
        k: resolve_env_vars(v) if isinstance(v, str) else v
        for k, v in section.items()
    }


def _env_overrides() -> dict[str, str]:
    overrides = {}
    for field_name in FilterSettings.model_fields:
        env_value = os.environ.get(f"{ENV_PREFIX}{field_name.upper()}")
        if env_value:
            overrides[field_name] = env_value
    return overrides


def load_filter_settings(path: str | Path | None = None) -> FilterSettings:
    """Load settings from YAML and environment.

    Args:
        path: Optional explicit YAML path. When omitted, ./dbview-filters.yaml
            is used if present.

    Returns:
        Validated FilterSettings.

    Raises:
        FilterConfigError: If the explicit path does not exist or a value is
            invalid.
    """
    data: dict[str, Any] = {}
    if path is not None:
        config_path = Path(path).expanduser()
        if not config_path.is_file():
            raise FilterConfigError(f"Config file not found: {config_path}")
        data = _read_yaml(config_path)
    else:
        default_path = Path.cwd() / DEFAULT_CONFIG_FILENAME
        if default_path.is_file():
            data = _read_yaml(default_path)

    data.update(_env_overrides())
    known = {k: v for k, v in data.items() if k in FilterSettings.model_fields}
    unknown = sorted(set(data) - set(known))
    if unknown:
        logger.warning("Ignoring unknown filter settings: %s", ", ".join(unknown))

    try:
        settings = FilterSettings(**known)
    except ValueError as exc:
        raise FilterConfigError(f"Invalid filter settings: {exc}") from exc
    validate_filter_config(settings)
    return settings


@lru_cache(maxsize=1)
def get_filter_settings() -> FilterSettings:
    """Return process-wide settings, loaded once."""
    return load_filter_settings()


def validate_filter_config(settings: FilterSettings) -> None:
    """Fail fast on limits that would make every filter invalid.

    Raises:
        FilterConfigError: If a limit is not positive or the default dialect
            is unknown.
    """
    if settings.max_conditions < 1:
        raise FilterConfigError(
            f"max_conditions must be at least 1. Current value: {settings.max_conditions}."
        )
    if settings.max_in_cardinality < 1:
        raise FilterConfigError(
            f"max_in_cardinality must be at least 1. "
            f"Current value: {settings.max_in_cardinality}."
        )
    valid_dialects = {d.value for d in SqlDialect}
    if settings.default_sql_dialect not in valid_dialects:
        raise FilterConfigError(
            f"default_sql_dialect must be one of {sorted(valid_dialects)}, "
            f"got {settings.default_sql_dialect!r}."
        )
