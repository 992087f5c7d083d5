# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, Mapping, Optional

from loguru import logger
from pymongo.errors import DuplicateKeyError

from vowvenues.auth.passwords import hash_password_async, verify_password_async
from vowvenues.auth.tokens import TokenClaims, issue_token
from vowvenues.errors import AuthenticationError, ClientInputError, NotFoundError
from vowvenues.infra.db import USERS, translate_db_errors
from vowvenues.infra.documents import is_valid_object_id, parse_object_id, public_user

REGISTER_FIELDS = ("username", "password", "name", "email")


def _text(payload: Mapping[str, Any], key: str) -> str:
    v = payload.get(key)
    if not isinstance(v, str):
        return ""
    # passwords are taken verbatim, everything else is trimmed
    return v if key == "password" else v.strip()


def _auth_response(user_doc: Mapping[str, Any], *, secret: str) -> Dict[str, Any]:
    user = public_user(user_doc)
    token = issue_token(user["_id"], user["username"], secret=secret)
    return {"user": user, "token": token}


async def register_user(db, payload: Mapping[str, Any], *, secret: str) -> Dict[str, Any]:
    """Create a user and return ``{"user", "token"}``.

    Raises ClientInputError when a field is missing or the username is taken.
    """
    fields = {k: _text(payload, k) for k in REGISTER_FIELDS}
    if not all(fields.values()):
        raise ClientInputError("All fields are required")

    users = db[USERS]
    with translate_db_errors():
        existing = await users.find_one({"username": fields["username"]}, {"_id": 1})
    if existing:
        raise ClientInputError("Username already exists")

    doc = {
        "username": fields["username"],
        "password": await hash_password_async(fields["password"]),
        "name": fields["name"],
        "email": fields["email"],
        "createdAt": datetime.now(timezone.utc),
    }
    with translate_db_errors():
        try:
            result = await users.insert_one(doc)
        except DuplicateKeyError:
            # lost a race with a concurrent registration; the unique index decides
            raise ClientInputError("Username already exists")
    doc["_id"] = result.inserted_id

    logger.info("Registered user {}", fields["username"])
    return _auth_response(doc, secret=secret)


async def login_user(db, payload: Mapping[str, Any], *, secret: str) -> Dict[str, Any]:
    username = _text(payload, "username")
    password = _text(payload, "password")
    if not username or not password:
        raise ClientInputError("Username and password are required")

    with translate_db_errors():
        user = await db[USERS].find_one({"username": username})
    if not user or not await verify_password_async(str(user.get("password") or ""), password):
        logger.warning("Failed login for {}", username)
        raise AuthenticationError("Invalid credentials")

    logger.info("User {} logged in", username)
    return _auth_response(user, secret=secret)


async def get_current_user(db, claims: Optional[TokenClaims]) -> Dict[str, Any]:
    if claims is None:
        raise AuthenticationError("Invalid token")
    if not is_valid_object_id(claims.user_id):
        raise NotFoundError("User not found")

    with translate_db_errors():
        user = await db[USERS].find_one({"_id": parse_object_id(claims.user_id)}, {"password": 0})
    if not user:
        logger.info("Token refers to missing user {}", claims.user_id)
        raise NotFoundError("User not found")
    return public_user(user)
