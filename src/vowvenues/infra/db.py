# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Process-wide database handle.

``ConnectionCache`` is built once per application and handed to request
handlers through a dependency. It opens at most one connection at a time:
callers arriving while an attempt is in flight await that same attempt, and a
failed attempt is forgotten so the next ``acquire()`` starts over.
"""

from __future__ import annotations

import asyncio
from contextlib import contextmanager
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from loguru import logger
from pymongo import ASCENDING, AsyncMongoClient
from pymongo.errors import PyMongoError

from vowvenues.config import Settings
from vowvenues.errors import InfrastructureError

Connector = Callable[[str, str], Awaitable[Any]]
Disposer = Callable[[Any], Awaitable[None]]

USERS = "users"
VENUES = "venues"


class CacheState(str, Enum):
    EMPTY = "empty"
    CONNECTING = "connecting"
    CONNECTED = "connected"


async def connect_mongo(uri: str, db_name: str):
    """Open a client, check it answers, and return the database handle."""
    client = AsyncMongoClient(uri)
    try:
        await client.admin.command("ping")
        db = client[db_name]
        await db[USERS].create_index([("username", ASCENDING)], unique=True)
    except Exception:
        await client.close()
        raise
    return db


async def close_mongo(db) -> None:
    await db.client.close()


class ConnectionCache:
    def __init__(
        self,
        settings: Settings,
        *,
        connect: Connector = connect_mongo,
        dispose: Optional[Disposer] = close_mongo,
    ):
        self._settings = settings
        self._connect = connect
        self._dispose = dispose
        self._handle: Any = None
        self._pending: Optional[asyncio.Task] = None

    @property
    def state(self) -> CacheState:
        if self._handle is not None:
            return CacheState.CONNECTED
        if self._pending is not None:
            return CacheState.CONNECTING
        return CacheState.EMPTY

    async def acquire(self):
        if self._handle is not None:
            return self._handle

        if self._pending is None:
            uri = self._settings.require_mongodb_uri()
            logger.info("Opening database connection (db={})", self._settings.db_name)
            self._pending = asyncio.ensure_future(self._open(uri))

        # shield: one waiter being cancelled must not cancel the shared attempt
        return await asyncio.shield(self._pending)

    async def _open(self, uri: str):
        try:
            handle = await self._connect(uri, self._settings.db_name)
        except Exception as exc:
            logger.error("Database connection failed: {}", exc)
            raise
        else:
            self._handle = handle
            logger.info("Database connection established")
            return handle
        finally:
            self._pending = None

    async def reset(self) -> None:
        """Forget the cached handle (closing it) so the next acquire reconnects."""
        handle, self._handle = self._handle, None
        if handle is not None and self._dispose is not None:
            await self._dispose(handle)
            logger.info("Database connection closed")


@contextmanager
def translate_db_errors():
    """Re-raise driver failures as ``InfrastructureError``."""
    try:
        yield
    except PyMongoError as e:
        logger.error("Database operation failed: {}", e)
        raise InfrastructureError(detail=str(e)) from e
