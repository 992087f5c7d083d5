# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from itsdangerous import BadData, URLSafeTimedSerializer

from vowvenues.config import DEFAULT_TOKEN_MAX_AGE_SECONDS
from vowvenues.errors import ConfigurationError

TOKEN_SALT = "vowvenues.token.v1"


def _serializer(secret: str) -> URLSafeTimedSerializer:
    if not secret:
        raise ConfigurationError(detail="Token signing secret is not set")
    return URLSafeTimedSerializer(secret_key=secret, salt=TOKEN_SALT)


@dataclass(frozen=True)
class TokenClaims:
    user_id: str
    username: str


def issue_token(user_id: str, username: str, *, secret: str) -> str:
    """Sign ``{userId, username}``; the timestamp is embedded by itsdangerous."""
    return _serializer(secret).dumps({"userId": str(user_id), "username": username})


def verify_token(
    token: str,
    *,
    secret: str,
    max_age: int = DEFAULT_TOKEN_MAX_AGE_SECONDS,
) -> Optional[TokenClaims]:
    if not token:
        return None
    s = _serializer(secret)
    try:
        data = s.loads(token, max_age=max_age)
    except BadData:  # bad signature, expired, or undecodable payload
        return None
    if not isinstance(data, dict):
        return None
    uid = str(data.get("userId") or "").strip()
    uname = str(data.get("username") or "").strip()
    if not uid or not uname:
        return None
    return TokenClaims(user_id=uid, username=uname)
