"""Tests for configuration loading and environment overrides."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from auction_ingest.config import AppConfig, DatabaseConfig, QueueConfig, load_config

_ENV_VARS = (
    "DB_CONNECTION_STRING",
    "NEW_ITEM_QUEUE_URL",
    "AWS_REGION",
    "AUCTION_INGEST_LOG_LEVEL",
    "AUCTION_INGEST_DEBUG",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def _write_toml(tmp_path: Path, body: str) -> Path:
    path = tmp_path / "config.toml"
    path.write_text(body, encoding="utf-8")
    return path


def test_defaults():
    cfg = AppConfig()
    assert cfg.queue.batch_size == 10
    assert cfg.ingest.live_interval == 1
    assert cfg.queue.queue_url == ""


def test_loads_toml(tmp_path):
    path = _write_toml(tmp_path, '[database]\nconnection_string = "x.db"\n[queue]\nbatch_size = 5\n')
    cfg = load_config(path)
    assert cfg.database.db_path == "x.db"
    assert cfg.queue.batch_size == 5


def test_local_toml_overrides(tmp_path):
    path = _write_toml(tmp_path, '[logging]\nlevel = "INFO"\n[aws]\nregion = "eu-west-1"\n')
    (tmp_path / "local.toml").write_text('[logging]\nlevel = "DEBUG"\n', encoding="utf-8")
    cfg = load_config(path)
    assert cfg.logging.level == "DEBUG"
    assert cfg.aws.region == "eu-west-1"


def test_env_overrides(tmp_path, monkeypatch):
    path = _write_toml(tmp_path, '[database]\nconnection_string = "x.db"\n')
    monkeypatch.setenv("DB_CONNECTION_STRING", "sqlite:////var/data/auctions.db")
    monkeypatch.setenv("NEW_ITEM_QUEUE_URL", "https://sqs.example/q")
    monkeypatch.setenv("AWS_REGION", "eu-central-1")
    monkeypatch.setenv("AUCTION_INGEST_LOG_LEVEL", "warning")
    monkeypatch.setenv("AUCTION_INGEST_DEBUG", "true")

    cfg = load_config(path)
    assert cfg.database.db_path == "/var/data/auctions.db"
    assert cfg.queue.queue_url == "https://sqs.example/q"
    assert cfg.aws.region == "eu-central-1"
    assert cfg.logging.level == "WARNING"
    assert cfg.debug is True


def test_explicit_missing_path_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_config(tmp_path / "nope.toml")


@pytest.mark.parametrize("value,expected", [
    ("data/db/auctions.db", "data/db/auctions.db"),
    (":memory:", ":memory:"),
    ("sqlite:///relative/a.db", "relative/a.db"),
])
def test_db_path_resolution(value, expected):
    assert DatabaseConfig(connection_string=value).db_path == expected


def test_empty_connection_string_rejected():
    with pytest.raises(ValidationError):
        DatabaseConfig(connection_string="  ")


@pytest.mark.parametrize("size", [0, 11])
def test_batch_size_bounds(size):
    with pytest.raises(ValidationError):
        QueueConfig(batch_size=size)


def test_bad_log_level_rejected(tmp_path):
    path = _write_toml(tmp_path, '[logging]\nlevel = "LOUD"\n')
    with pytest.raises(ValidationError):
        load_config(path)


def test_config_is_frozen():
    cfg = AppConfig()
    with pytest.raises(ValidationError):
        cfg.debug = True
