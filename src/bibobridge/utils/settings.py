# src/bibobridge/utils/settings.py
"""
Converter settings.

Precedence (lowest to highest): defaults, the ``converter:`` section of a
YAML file, ``BIBOBRIDGE_*`` environment variables.

Example YAML::

    converter:
      key_strategy: author_title
      strict_identifiers: true
      base_iri: https://example.org/bib/
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from bibobridge.application.services.citation_keys import KeyStrategy

logger = logging.getLogger(__name__)

ENV_PREFIX = "BIBOBRIDGE_"


class ConverterSettings(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    key_strategy: KeyStrategy = Field(KeyStrategy.AUTHOR_YEAR, description="Citation key strategy")
    strict_identifiers: bool = Field(False, description="Fail on invalid identifiers instead of keeping them")
    allow_future_dates: bool = Field(True, description="Accept years after the current one")
    future_year_window: int = Field(5, ge=0, description="Years ahead before a date is logged as suspicious")
    base_iri: Optional[str] = Field(None, description="Prefix for minted subject IRIs")
    max_workers: int = Field(4, ge=1, description="Thread pool size for batch conversion")

    @field_validator("key_strategy", mode="before")
    @classmethod
    def _lower_strategy(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower().replace("-", "_")
        return value

    @field_validator("base_iri")
    @classmethod
    def _blank_iri(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return value.strip() or None


def _env_overrides(environ: Mapping[str, str]) -> Dict[str, str]:
    overrides = {}
    for name in ConverterSettings.model_fields:
        raw = environ.get(f"{ENV_PREFIX}{name.upper()}")
        if raw is not None and raw.strip():
            overrides[name] = raw.strip()
    return overrides


def _read_yaml(config_path: Path) -> Dict[str, Any]:
    if not config_path.exists():
        raise FileNotFoundError(f"Settings file not found: {config_path}")
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        raise ValueError(f"Invalid YAML in config file: {e}")

    if not isinstance(data, dict):
        raise ValueError(f"Config file {config_path} must contain a mapping")
    section = data.get("converter") or {}
    if not isinstance(section, dict):
        raise ValueError("'converter' section must be a mapping")
    return section


def load_settings(
    config_path: Optional[Union[str, Path]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> ConverterSettings:
    """
    Build settings from defaults, an optional YAML file and the environment.

    Raises:
        FileNotFoundError: ``config_path`` does not exist
        ValueError: malformed YAML or an invalid setting value
    """
    values: Dict[str, Any] = {}
    if config_path is not None:
        values.update(_read_yaml(Path(config_path)))
        logger.info(f"Loaded converter settings from {config_path}")
    values.update(_env_overrides(os.environ if environ is None else environ))

    try:
        return ConverterSettings(**values)
    except ValidationError as exc:
        error = exc.errors()[0]
        key = ".".join(str(part) for part in error["loc"]) or "settings"
        raise ValueError(f"Invalid setting '{key}': {error['msg']}") from exc
