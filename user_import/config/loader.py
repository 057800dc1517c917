from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load YAML config (config/import.yml by default)
- Validate against config_schema.json (shipped next to this module)
- Apply defaults for every optional key
"""

__all__ = [
    "DEFAULT_CONFIG_PATH",
    "DEFAULT_SERVER_URL",
    "ConfigError",
    "DatabaseConfig",
    "ImportConfig",
    "load_config",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")

DEFAULT_SERVER_URL = "http://localhost:1337"
DEFAULT_RESULT_TTL_SECONDS = 60 * 60
DEFAULT_MAX_FILE_SIZE_BYTES = 5 * 1024 * 1024
DEFAULT_WORKERS = 1
DEFAULT_ERROR_LOG_DIR = "./logs"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    """Fallback connection settings; environment variables take precedence."""
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportConfig:
    server_url: str = DEFAULT_SERVER_URL  # invitation link base
    result_ttl_seconds: int = DEFAULT_RESULT_TTL_SECONDS
    max_file_size_bytes: int = DEFAULT_MAX_FILE_SIZE_BYTES
    workers: int = DEFAULT_WORKERS  # 1 = sequential provisioning
    error_log_dir: str = DEFAULT_ERROR_LOG_DIR
    database: DatabaseConfig = field(default_factory=DatabaseConfig)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing or unreadable, or the data violates it
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


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("config root must be a mapping")

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    return ImportConfig(
        server_url=data.get("server_url", DEFAULT_SERVER_URL),
        result_ttl_seconds=data.get("result_ttl_seconds", DEFAULT_RESULT_TTL_SECONDS),
        max_file_size_bytes=data.get("max_file_size_bytes", DEFAULT_MAX_FILE_SIZE_BYTES),
        workers=data.get("workers", DEFAULT_WORKERS),
        error_log_dir=data.get("error_log_dir", DEFAULT_ERROR_LOG_DIR),
        database=db,
    )
