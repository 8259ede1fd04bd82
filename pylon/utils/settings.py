"""
pylon/utils/settings.py

WHAT THIS FILE IS FOR
---------------------
This module is the *single source of truth* for runtime configuration
of the pylon response adapter.

It is responsible for:
- Defining all supported configuration fields (via Pydantic BaseSettings)
- Loading default values from parameters/parameters.yaml
- Overriding defaults with environment variables (PYLON_*)
- Exposing a cached Settings object to the rest of the package

LOAD & PRECEDENCE MODEL
-----------------------
Configuration is loaded in the following order (last wins):

1) Built-in defaults declared on Settings
2) YAML defaults from:
       parameters/parameters.yaml
3) Environment variables:
       PYLON_*

List-valued settings are read from the environment as JSON, e.g.

    PYLON_TEXT_CONTENT_TYPES='["text/.*", "application/json"]'

WHAT THIS FILE IS NOT FOR
-------------------------
This module does NOT compile or validate content-type patterns.
That happens in pylon/adapter/text_classifier.py, which raises
ConfigurationError when the configured list is unusable.
An environment value that cannot be parsed at all (PYLON_TEXT_CONTENT_TYPES
that is not JSON) raises ConfigurationError from get_settings().
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Tuple

import structlog
import yaml
from pydantic import Field, ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict, SettingsError

from pylon.utils.errors import ConfigurationError

logger = structlog.get_logger(__name__)

PARAMETERS_PATH = Path(__file__).resolve().parents[2] / "parameters" / "parameters.yaml"

# Content types that are safe to return verbatim. Anything else is base64-encoded.
DEFAULT_TEXT_CONTENT_TYPES: Tuple[str, ...] = (
    r"text/.*",
    r"application/json",
    r"application/.*\+json",
    r"application/xml",
    r"application/.*\+xml",
)


class Settings(BaseSettings):
    """
    Runtime settings for pylon.

    Load order / precedence:
        1) YAML defaults (parameters/parameters.yaml)
        2) Environment variables (PYLON_*), overriding YAML
    """

    model_config = SettingsConfigDict(
        env_prefix="PYLON_",
        extra="ignore",
    )

    # Service metadata
    service_name: str = "pylon"
    environment: str = "local"
    log_level: str = "INFO"

    # Body encoding policy
    text_content_types: List[str] = Field(
        default_factory=lambda: list(DEFAULT_TEXT_CONTENT_TYPES),
        description=(
            "Ordered regular expressions matched against the start of the response "
            "Content-Type. Matching bodies are returned as text; all others are base64-encoded."
        ),
    )


@lru_cache(maxsize=1)
def _load_yaml_parameters() -> Dict[str, Any]:
    """
    Load base configuration from parameters/parameters.yaml.

    A missing or malformed file is not fatal: built-in defaults apply.
    """
    if not PARAMETERS_PATH.exists():
        logger.warning("parameters_yaml_missing", expected=str(PARAMETERS_PATH))
        return {}

    try:
        with PARAMETERS_PATH.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        logger.error("parameters_yaml_load_error", path=str(PARAMETERS_PATH), error=str(exc))
        return {}

    if not isinstance(data, dict):
        logger.warning(
            "parameters_yaml_not_dict",
            path=str(PARAMETERS_PATH),
            type=type(data).__name__,
        )
        return {}

    logger.info("parameters_yaml_loaded", path=str(PARAMETERS_PATH))
    return data


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Construct and return the final validated Settings object.

    Cached (singleton per process). Code needing configuration should call
    this function rather than instantiate Settings() directly.
    """
    yaml_data = _load_yaml_parameters()

    try:
        env_data = Settings().model_dump(exclude_unset=True)
    except ValidationError as exc:
        logger.warning("settings_env_validation_error", errors=exc.errors())
        env_data = {}
    except SettingsError as exc:
        # Raw env value could not be parsed at all (e.g. a list that is not JSON).
        logger.error("settings_env_parse_error", error=str(exc))
        raise ConfigurationError(f"invalid PYLON_* environment setting: {exc}") from exc

    merged: Dict[str, Any] = {**yaml_data, **env_data}
    settings = Settings.model_validate(merged)

    logger.info(
        "settings_loaded",
        environment=settings.environment,
        service_name=settings.service_name,
        text_content_types=settings.text_content_types,
    )

    return settings
