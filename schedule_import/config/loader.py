from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..models.config_models import (
    DatabaseConfig,
    HeaderAliasTable,
    ImportSettings,
    SubjectSettings,
)

"""Config loader.

Responsibilities:
- Load YAML config (default location config/import.yml)
- Validate against the packaged JSON schema (config_schema.json)
- Apply defaults for every key that is missing
"""

__all__ = [
    "ConfigError",
    "SCHEMA_PATH",
    "DEFAULT_CONFIG_PATH",
    "default_settings",
    "load_config",
]

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: If the schema file is missing or unreadable, or the config
            data fails schema validation (unknown keys, wrong types, ...).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def default_settings() -> ImportSettings:
    return ImportSettings()


def _build_subject_settings(raw: dict[str, Any]) -> SubjectSettings:
    base = SubjectSettings()
    return SubjectSettings(
        default_description=raw.get("default_description", base.default_description),
        fallback_teacher_id=raw.get("fallback_teacher_id", base.fallback_teacher_id),
        teacher_role=raw.get("teacher_role", base.teacher_role),
        palette=tuple(raw.get("palette", base.palette)),
    )


def load_config(path: Path) -> ImportSettings:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    base = default_settings()
    db_raw = data.get("database", {})
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    headers = HeaderAliasTable().with_overrides(
        aliases=data.get("header_aliases"),
        keywords=data.get("header_keywords"),
    )
    return ImportSettings(
        upload_directory=data.get("upload_directory", base.upload_directory),
        error_log_directory=data.get("error_log_directory", base.error_log_directory),
        fallback_encoding=data.get("fallback_encoding", base.fallback_encoding),
        min_encoding_confidence=float(data.get("min_encoding_confidence", base.min_encoding_confidence)),
        subjects=_build_subject_settings(data.get("subjects", {})),
        headers=headers,
        database=db,
    )
