# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import hmac
import secrets
from typing import Optional

from argon2.low_level import Type, hash_secret_raw
from fastapi.concurrency import run_in_threadpool

SALT_BYTES = 16
KEY_BYTES = 64
SEPARATOR = "."

# argon2id parameters; changing them invalidates every stored hash.
TIME_COST = 2
MEMORY_COST_KIB = 19456
PARALLELISM = 1


def _derive(plain: str, salt_hex: str) -> bytes:
    return hash_secret_raw(
        secret=plain.encode("utf-8"),
        salt=salt_hex.encode("ascii"),
        time_cost=TIME_COST,
        memory_cost=MEMORY_COST_KIB,
        parallelism=PARALLELISM,
        hash_len=KEY_BYTES,
        type=Type.ID,
    )


def hash_password(plain: str, *, salt: Optional[bytes] = None) -> str:
    """Return ``"<hashHex>.<saltHex>"`` for ``plain`` with a fresh random salt."""
    if not plain:
        raise ValueError("Password vacío")
    if salt is None:
        salt = secrets.token_bytes(SALT_BYTES)
    elif len(salt) < SALT_BYTES:
        raise ValueError(f"La sal debe tener al menos {SALT_BYTES} bytes")
    salt_hex = salt.hex()
    return f"{_derive(plain, salt_hex).hex()}{SEPARATOR}{salt_hex}"


def verify_password(stored: str, plain: str) -> bool:
    if not stored or not plain:
        return False
    hashed_hex, sep, salt_hex = stored.partition(SEPARATOR)
    if not sep or not hashed_hex or not salt_hex:
        return False
    try:
        expected = bytes.fromhex(hashed_hex)
        salt_ascii = salt_hex.encode("ascii")
    except (ValueError, UnicodeEncodeError):
        return False
    if len(expected) != KEY_BYTES or len(salt_ascii) < 8:
        return False
    return hmac.compare_digest(expected, _derive(plain, salt_hex))


async def hash_password_async(plain: str) -> str:
    return await run_in_threadpool(hash_password, plain)


async def verify_password_async(stored: str, plain: str) -> bool:
    return await run_in_threadpool(verify_password, stored, plain)
