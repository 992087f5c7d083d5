# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from typing import Optional

from fastapi import Request

from vowvenues.auth.tokens import TokenClaims, verify_token
from vowvenues.config import Settings
from vowvenues.errors import AuthenticationError

BEARER_PREFIX = "Bearer "


def bearer_token(request: Request) -> str:
    """Token from ``Authorization: Bearer <token>``, or "" when absent."""
    header = request.headers.get("authorization", "")
    if not header.startswith(BEARER_PREFIX):
        return ""
    return header[len(BEARER_PREFIX):].strip()


def claims_from_request(request: Request) -> Optional[TokenClaims]:
    token = bearer_token(request)
    if not token:
        return None
    settings: Settings = request.app.state.settings
    return verify_token(token, secret=settings.require_secret(), max_age=settings.token_max_age)


def require_claims(request: Request) -> TokenClaims:
    if not bearer_token(request):
        raise AuthenticationError("No token provided")
    claims = claims_from_request(request)
    if claims is None:
        raise AuthenticationError("Invalid token")
    return claims
