# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from datetime import date, datetime
from typing import Any, Dict, Mapping

from bson import ObjectId
from bson.errors import InvalidId

PRIVATE_USER_FIELDS = ("password",)


def is_valid_object_id(value: str) -> bool:
    return bool(value) and ObjectId.is_valid(value)


def parse_object_id(value: str) -> ObjectId:
    try:
        return ObjectId(value)
    except (InvalidId, TypeError) as e:
        raise ValueError(f"Identificador inválido: {value!r}") from e


def _jsonable(value: Any) -> Any:
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Mapping):
        return {str(k): _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    return value


def to_public(doc: Mapping[str, Any]) -> Dict[str, Any]:
    """Render a stored document for a JSON response (ids and dates as strings)."""
    return _jsonable(dict(doc))


def public_user(doc: Mapping[str, Any]) -> Dict[str, Any]:
    out = to_public(doc)
    for k in PRIVATE_USER_FIELDS:
        out.pop(k, None)
    return out
