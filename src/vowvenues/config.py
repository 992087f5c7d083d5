# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from vowvenues.errors import ConfigurationError

DEFAULT_DB_NAME = "vowvenues"
DEFAULT_TOKEN_MAX_AGE_SECONDS = 7 * 24 * 3600  # 7 days
DEFAULT_CORS_ORIGINS = ("http://localhost:5173", "http://localhost:3000")


def _split_origins(raw: str) -> Tuple[str, ...]:
    return tuple(o.strip().rstrip("/") for o in raw.split(",") if o.strip())


@dataclass(frozen=True)
class Settings:
    mongodb_uri: Optional[str] = None
    db_name: str = DEFAULT_DB_NAME
    secret_key: Optional[str] = field(default=None, repr=False)
    token_max_age: int = DEFAULT_TOKEN_MAX_AGE_SECONDS
    cors_origins: Tuple[str, ...] = DEFAULT_CORS_ORIGINS
    log_level: str = "INFO"

    def require_secret(self) -> str:
        if not self.secret_key:
            raise ConfigurationError(detail="JWT_SECRET (or VOW_SECRET_KEY) is not set")
        return self.secret_key

    def require_mongodb_uri(self) -> str:
        if not self.mongodb_uri:
            raise ConfigurationError(detail="MONGODB_URI is not set")
        return self.mongodb_uri


def load_settings() -> Settings:
    """Read settings from the process environment."""
    origins = os.getenv("VOW_CORS_ORIGINS")
    return Settings(
        mongodb_uri=os.getenv("MONGODB_URI") or None,
        db_name=os.getenv("VOW_DB_NAME", DEFAULT_DB_NAME),
        secret_key=os.getenv("JWT_SECRET") or os.getenv("VOW_SECRET_KEY") or None,
        token_max_age=int(os.getenv("VOW_TOKEN_MAX_AGE", str(DEFAULT_TOKEN_MAX_AGE_SECONDS))),
        cors_origins=_split_origins(origins) if origins is not None else DEFAULT_CORS_ORIGINS,
        log_level=os.getenv("VOW_LOG_LEVEL", "INFO").upper(),
    )
