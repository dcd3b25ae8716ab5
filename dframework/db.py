"""
SQLite access for dframework.

The database file is picked, first match wins, from ``DFRAMEWORK_DB_PATH``,
``test_db_path`` in config.yaml (pytest or ``APP_ENV=test`` only), ``db_path``
in config.yaml, and finally ``dframework.db`` next to the package.
"""
from __future__ import annotations

import os
import sqlite3
from contextlib import contextmanager
from typing import Iterator

import yaml

_PROJECT_ROOT = os.path.dirname(os.path.dirname(__file__))
CONFIG_PATH = os.path.join(_PROJECT_ROOT, "config.yaml")
DEFAULT_DB = os.path.join(_PROJECT_ROOT, "dframework.db")


def read_config_yaml(path: str | None = None) -> dict:
    """Mapping from config.yaml; empty when the file is missing or unreadable."""
    try:
        with open(path or CONFIG_PATH, encoding="utf-8") as f:
            cfg = yaml.safe_load(f)
    except (OSError, yaml.YAMLError):
        return {}
    return cfg if isinstance(cfg, dict) else {}


def _in_test_run() -> bool:
    return os.environ.get("APP_ENV") == "test" or "PYTEST_CURRENT_TEST" in os.environ


def get_db_path() -> str:
    cfg = read_config_yaml()
    candidates = [os.environ.get("DFRAMEWORK_DB_PATH")]
    if _in_test_run():
        candidates.append(cfg.get("test_db_path"))
    candidates.append(cfg.get("db_path"))
    path = next((c.strip() for c in candidates if isinstance(c, str) and c.strip()), DEFAULT_DB)
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    return path


@contextmanager
def get_conn(db_path: str | None = None) -> Iterator[sqlite3.Connection]:
    """Connection to ``db_path`` (or ``get_db_path()``) with ``sqlite3.Row`` rows and foreign keys on."""
    conn = sqlite3.connect(db_path or get_db_path(), check_same_thread=False)
    try:
        conn.execute("PRAGMA foreign_keys = ON")
        conn.row_factory = sqlite3.Row
        yield conn
    finally:
        conn.close()
