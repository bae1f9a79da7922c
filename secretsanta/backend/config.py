"""Configuration helpers for backend runtime."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class BackendSettings:
    database_url: str | None
    host: str
    port: int
    public_url: str
    max_attempts: int
    log_level: str


def load_settings() -> BackendSettings:
    port_raw = os.getenv("SECRETSANTA_PORT", "8000")
    attempts_raw = os.getenv("SECRETSANTA_MAX_ATTEMPTS", "100")
    return BackendSettings(
        database_url=os.getenv("SECRETSANTA_DATABASE_URL"),
        host=os.getenv("SECRETSANTA_HOST", "127.0.0.1"),
        port=int(port_raw),
        public_url=os.getenv("SECRETSANTA_PUBLIC_URL", "http://127.0.0.1:8000/api/view"),
        max_attempts=int(attempts_raw),
        log_level=os.getenv("SECRETSANTA_LOG_LEVEL", "INFO").upper(),
    )
