"""
Application configuration management.

Load order (each layer overrides the previous):
  1. ``config/default.toml``      — committed static defaults
  2. ``config/local.toml``        — optional local overrides (gitignored)
  3. ``.env``                     — local secrets and env overrides (gitignored)
  4. Environment variables        — ``DB_CONNECTION_STRING``,
                                    ``NEW_ITEM_QUEUE_URL``, ``AWS_REGION``,
                                    ``AUCTION_INGEST_*``

Entry point: ``load_config(config_path=None) -> AppConfig``

A Lambda bundle usually ships without ``config/default.toml``; when no
explicit path is given and the default file is absent, configuration is
built from model defaults plus the environment.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, field_validator

logger = logging.getLogger(__name__)

_SQLITE_URL_PREFIX = "sqlite:///"

# ── Sub-config models ─────────────────────────────────────────────────────────


class DatabaseConfig(BaseModel):
    """SQLite connection settings.

    ``connection_string`` is either a filesystem path, ``":memory:"``, or a
    ``sqlite:///path`` URL. Use :attr:`db_path` to get the resolved path.
    """

    model_config = ConfigDict(frozen=True)

    connection_string: str = "data/db/auctions.db"
    wal_mode: bool = True
    busy_timeout_ms: int = 5000

    @field_validator("connection_string")
    @classmethod
    def validate_connection_string(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Database connection_string must not be empty.")
        return v.strip()

    @property
    def db_path(self) -> str:
        if self.connection_string.startswith(_SQLITE_URL_PREFIX):
            return self.connection_string[len(_SQLITE_URL_PREFIX):]
        return self.connection_string


class AwsConfig(BaseModel):
    """AWS client settings shared by the S3 and SQS gateways."""

    model_config = ConfigDict(frozen=True)

    region: str = "us-east-1"


class QueueConfig(BaseModel):
    """New-item fan-out queue settings."""

    model_config = ConfigDict(frozen=True)

    queue_url: str = ""
    batch_size: int = 10

    @field_validator("batch_size")
    @classmethod
    def validate_batch_size(cls, v: int) -> int:
        # SendMessageBatch accepts at most 10 entries.
        if not 1 <= v <= 10:
            raise ValueError(f"batch_size must be in [1, 10], got {v}.")
        return v


class IngestConfig(BaseModel):
    """Row mapping parameters."""

    model_config = ConfigDict(frozen=True)

    live_interval: int = 1
    csv_encoding: str = "utf-8"


class LoggingConfig(BaseModel):
    """Logging output settings."""

    model_config = ConfigDict(frozen=True)

    level: str = "INFO"
    log_file: str = ""
    json_format: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"Log level must be one of {sorted(valid)}, got '{v}'.")
        return v.upper()


class AppConfig(BaseModel):
    """Complete application configuration.

    Stages, gateways and CLI commands receive an ``AppConfig`` instance —
    never raw dicts or individual env var lookups scattered through the
    codebase.
    """

    model_config = ConfigDict(frozen=True)

    database: DatabaseConfig = DatabaseConfig()
    aws: AwsConfig = AwsConfig()
    queue: QueueConfig = QueueConfig()
    ingest: IngestConfig = IngestConfig()
    logging: LoggingConfig = LoggingConfig()
    debug: bool = False


# ── Loader ────────────────────────────────────────────────────────────────────

def _find_project_root() -> Path:
    """Nearest ancestor of this package holding ``pyproject.toml``.

    An installed wheel (the Lambda bundle) has none, so the working
    directory is used instead; for Lambda that is the task root.
    """
    for candidate in Path(__file__).resolve().parents[:3]:
        if (candidate / "pyproject.toml").exists():
            return candidate
    return Path.cwd()


def load_config(config_path: Optional[Path] = None) -> AppConfig:
    """Load and merge application configuration.

    Args:
        config_path: Explicit path to a TOML config file. Defaults to
            ``<project_root>/config/default.toml`` if that file exists.

    Returns:
        Fully validated ``AppConfig`` instance.

    Raises:
        FileNotFoundError: If an explicit ``config_path`` does not exist.
        pydantic.ValidationError: If merged config values fail validation.
    """
    root = _find_project_root()

    # 1. Load .env file (silently skip if missing)
    load_dotenv(dotenv_path=root / ".env", override=False)

    # 2. Load TOML config
    raw: dict[str, Any] = {}
    if config_path is None:
        default_path = root / "config" / "default.toml"
        if default_path.exists():
            raw = _load_toml_with_local(default_path)
        else:
            logger.debug("No config/default.toml found; using defaults + environment.")
    else:
        config_path = Path(config_path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        raw = _load_toml_with_local(config_path)

    # 3. Apply environment variable overrides
    raw = _apply_env_overrides(raw)

    # 4. Build and validate AppConfig
    return _build_app_config(raw)


def _load_toml_with_local(config_path: Path) -> dict[str, Any]:
    with open(config_path, "rb") as f:
        raw: dict[str, Any] = tomllib.load(f)

    # Also merge local.toml if present (gitignored local overrides)
    local_config_path = config_path.parent / "local.toml"
    if local_config_path.exists():
        with open(local_config_path, "rb") as f:
            local_raw: dict[str, Any] = tomllib.load(f)
        raw = _deep_merge(raw, local_raw)
    return raw


def _deep_merge(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    """Recursively merge ``override`` into ``base``."""
    result = dict(base)
    for key, val in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(val, dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _apply_env_overrides(raw: dict[str, Any]) -> dict[str, Any]:
    """Apply environment variables to the raw config dict.

    Supported overrides:
      DB_CONNECTION_STRING      → raw["database"]["connection_string"]
      NEW_ITEM_QUEUE_URL        → raw["queue"]["queue_url"]
      AWS_REGION                → raw["aws"]["region"]
      AUCTION_INGEST_LOG_LEVEL  → raw["logging"]["level"]
      AUCTION_INGEST_DEBUG      → raw["debug"]
    """
    if conn_str := os.environ.get("DB_CONNECTION_STRING"):
        raw.setdefault("database", {})["connection_string"] = conn_str

    if queue_url := os.environ.get("NEW_ITEM_QUEUE_URL"):
        raw.setdefault("queue", {})["queue_url"] = queue_url

    if region := os.environ.get("AWS_REGION"):
        raw.setdefault("aws", {})["region"] = region

    if log_level := os.environ.get("AUCTION_INGEST_LOG_LEVEL"):
        raw.setdefault("logging", {})["level"] = log_level

    if debug := os.environ.get("AUCTION_INGEST_DEBUG"):
        raw["debug"] = debug.lower() in ("1", "true", "yes")

    return raw


def _build_app_config(raw: dict[str, Any]) -> AppConfig:
    """Map raw TOML dict to ``AppConfig`` model structure."""
    return AppConfig(
        database=DatabaseConfig(**raw.get("database", {})),
        aws=AwsConfig(**raw.get("aws", {})),
        queue=QueueConfig(**raw.get("queue", {})),
        ingest=IngestConfig(**raw.get("ingest", {})),
        logging=LoggingConfig(**raw.get("logging", {})),
        debug=raw.get("debug", False),
    )
