# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from vowvenues.errors import ClientInputError, NotFoundError
from vowvenues.infra.db import VENUES, translate_db_errors
from vowvenues.infra.documents import is_valid_object_id, parse_object_id, to_public


@dataclass(frozen=True)
class VenueFilters:
    """Optional listing filters. Bounds are inclusive; ``q`` matches name or address."""

    min_capacity: Optional[int] = None
    max_capacity: Optional[int] = None
    min_price: Optional[float] = None
    max_price: Optional[float] = None
    q: Optional[str] = None

    def to_query(self) -> Dict[str, Any]:
        query: Dict[str, Any] = {}
        for field_name, lo, hi in (
            ("capacity", self.min_capacity, self.max_capacity),
            ("price", self.min_price, self.max_price),
        ):
            if lo is not None and hi is not None and lo > hi:
                raise ClientInputError(f"Invalid {field_name} range")
            bounds: Dict[str, Any] = {}
            if lo is not None:
                bounds["$gte"] = lo
            if hi is not None:
                bounds["$lte"] = hi
            if bounds:
                query[field_name] = bounds

        text = (self.q or "").strip()
        if text:
            pattern = {"$regex": re.escape(text), "$options": "i"}
            query["$or"] = [{"name": pattern}, {"address": pattern}]
        return query


async def list_venues(db, filters: Optional[VenueFilters] = None) -> List[Dict[str, Any]]:
    query = (filters or VenueFilters()).to_query()
    with translate_db_errors():
        return [to_public(doc) async for doc in db[VENUES].find(query)]


async def get_venue(db, venue_id: str) -> Dict[str, Any]:
    if not is_valid_object_id(venue_id):
        raise ClientInputError("Invalid venue ID format")
    with translate_db_errors():
        venue = await db[VENUES].find_one({"_id": parse_object_id(venue_id)})
    if not venue:
        raise NotFoundError("Venue not found")
    return to_public(venue)
