# dframework/services/config_svc.py
from __future__ import annotations

import os
from dataclasses import dataclass, fields

from ..db import read_config_yaml
from .concatenated_column_svc import MAX_BATCH_SIZE

DEFAULTS = {
    "db_path": None,
    "max_batch_size": MAX_BATCH_SIZE,
    "secret_key": "",      # password field encryption; empty disables encryption
    "api_token": "",       # bearer token for /api/*; empty leaves routes open
    "token_url": None,
    "token_key": "token",
}

ENV_PREFIX = "DFRAMEWORK_"


@dataclass
class Settings:
    db_path: str | None = None
    max_batch_size: int = MAX_BATCH_SIZE
    secret_key: str = ""
    api_token: str = ""
    token_url: str | None = None
    token_key: str = "token"


def load_settings(path: str | None = None, environ: dict | None = None) -> Settings:
    """config.yaml first, then DFRAMEWORK_* environment variables on top."""
    env = os.environ if environ is None else environ
    cfg = read_config_yaml(path)
    out = dict(DEFAULTS)
    for f in fields(Settings):
        if cfg.get(f.name) is not None:
            out[f.name] = cfg[f.name]
        env_val = env.get(ENV_PREFIX + f.name.upper())
        if env_val:
            out[f.name] = env_val

    # 类型转换 & 兜底
    try:
        out["max_batch_size"] = int(out["max_batch_size"])
    except (TypeError, ValueError):
        raise ValueError(f"max_batch_size must be an integer, got {out['max_batch_size']!r}")
    if out["max_batch_size"] <= 0:
        raise ValueError("max_batch_size must be positive")
    out["secret_key"] = str(out["secret_key"] or "")
    out["api_token"] = str(out["api_token"] or "")
    out["token_key"] = str(out["token_key"] or "token")
    return Settings(**out)


def masked(settings: Settings) -> dict:
    out = {f.name: getattr(settings, f.name) for f in fields(Settings)}
    for k in ("secret_key", "api_token"):
        if out.get(k):
            out[k] = "***masked***"
    return out


def get_settings() -> Settings:
    return load_settings()
