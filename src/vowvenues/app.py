# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from loguru import logger
from starlette.datastructures import Headers

from vowvenues.auth.tokens import TokenClaims
from vowvenues.config import Settings, load_settings
from vowvenues.errors import install_error_handlers
from vowvenues.infra.db import ConnectionCache, translate_db_errors
from vowvenues.logging_setup import configure_logging
from vowvenues.permissions import require_claims
from vowvenues.services.account_service import get_current_user, login_user, register_user
from vowvenues.services.venue_service import VenueFilters, get_venue, list_venues


async def get_db(request: Request):
    cache: ConnectionCache = request.app.state.db_cache
    with translate_db_errors():
        return await cache.acquire()


class EmptyPreflightCORSMiddleware(CORSMiddleware):
    """Preflights always get an empty 200; CORS headers only for allowed origins."""

    def preflight_response(self, request_headers: Headers) -> Response:
        answer = super().preflight_response(request_headers)
        if answer.status_code != 200:
            return Response(status_code=200)
        headers = {
            k: v for k, v in answer.headers.items() if k.lower() not in {"content-length", "content-type"}
        }
        return Response(status_code=200, headers=headers)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


async def _json_body(request: Request) -> Dict[str, Any]:
    """Request body as a dict; anything else (empty, invalid, non-object) is {}."""
    try:
        data = await request.json()
    except ValueError:
        return {}
    return data if isinstance(data, dict) else {}


def create_app(settings: Optional[Settings] = None, cache: Optional[ConnectionCache] = None) -> FastAPI:
    settings = settings or load_settings()
    configure_logging(settings.log_level)
    cache = cache or ConnectionCache(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # no signing secret, no service
        settings.require_secret()
        logger.info("vowvenues ready (origins: {})", ", ".join(settings.cors_origins) or "-")
        try:
            yield
        finally:
            await cache.reset()

    app = FastAPI(title="vowvenues", lifespan=lifespan)
    app.state.settings = settings
    app.state.db_cache = cache

    install_error_handlers(app)

    @app.middleware("http")
    async def _options_ok(request: Request, call_next):
        # non-preflight OPTIONS; preflights are answered by EmptyPreflightCORSMiddleware
        if request.method == "OPTIONS":
            return Response(status_code=200)
        return await call_next(request)

    app.add_middleware(
        EmptyPreflightCORSMiddleware,
        allow_origins=list(settings.cors_origins),
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
        allow_headers=["Content-Type", "Authorization"],
    )

    # ------------------ Routes ------------------

    @app.get("/api/health")
    async def health():
        return {"status": "ok"}

    @app.post("/api/login")
    async def login(request: Request, db=Depends(get_db), cfg: Settings = Depends(get_settings)):
        payload = await _json_body(request)
        return await login_user(db, payload, secret=cfg.require_secret())

    @app.post("/api/register")
    async def register(request: Request, db=Depends(get_db), cfg: Settings = Depends(get_settings)):
        payload = await _json_body(request)
        body = await register_user(db, payload, secret=cfg.require_secret())
        return JSONResponse(status_code=201, content=body)

    @app.post("/api/logout")
    async def logout():
        # tokens are stateless; the client drops its copy
        return {"message": "Logged out successfully"}

    @app.get("/api/user")
    async def current_user(claims: TokenClaims = Depends(require_claims), db=Depends(get_db)):
        return await get_current_user(db, claims)

    @app.get("/api/venues")
    async def venues(
        db=Depends(get_db),
        min_capacity: Optional[int] = Query(None, alias="minCapacity"),
        max_capacity: Optional[int] = Query(None, alias="maxCapacity"),
        min_price: Optional[float] = Query(None, alias="minPrice"),
        max_price: Optional[float] = Query(None, alias="maxPrice"),
        q: Optional[str] = Query(None),
    ):
        filters = VenueFilters(
            min_capacity=min_capacity,
            max_capacity=max_capacity,
            min_price=min_price,
            max_price=max_price,
            q=q,
        )
        return await list_venues(db, filters)

    @app.get("/api/venues/{venue_id}")
    async def venue_detail(venue_id: str, db=Depends(get_db)):
        return await get_venue(db, venue_id)

    return app


app = create_app()
