# single_safety/main.py
from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import httpx
from fastapi import FastAPI

from single_safety.core.config import Settings, get_settings
from single_safety.core.db import dispose_db, init_db
from single_safety.core.logging_config import configure_logging
from single_safety.routes import applications, calendar, dashboard, health, products, safezones, settings, sgis
from single_safety.services.sgis_client import SGISClient
from single_safety.services.sgis_tokens import SGISTokenManager


def build_sgis_client(settings: Settings, http: httpx.AsyncClient) -> SGISClient:
    token_manager = SGISTokenManager(
        http,
        consumer_key=settings.sgis_consumer_key,
        consumer_secret=settings.sgis_consumer_secret,
        auth_url=settings.sgis_auth_url,
        expiry_buffer=settings.sgis_token_expiry_buffer,
    )
    return SGISClient(http, token_manager, base_url=settings.sgis_base_url)


@asynccontextmanager
async def lifespan(app: FastAPI):
    cfg: Settings = app.state.settings
    configure_logging(cfg.log_level)
    init_db(cfg.database_url)

    # One HTTP client + one token manager per process
    http = httpx.AsyncClient(timeout=cfg.sgis_timeout_seconds, transport=app.state.sgis_transport)
    app.state.sgis_client = build_sgis_client(cfg, http)

    yield

    app.state.sgis_client.token_manager.clear_token()
    app.state.sgis_client = None
    await http.aclose()
    dispose_db()


def create_app(
    app_settings: Optional[Settings] = None,
    sgis_transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    app = FastAPI(
        title="Single Safety Admin",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.settings = app_settings or get_settings()
    app.state.sgis_transport = sgis_transport
    app.state.sgis_client = None
    if app_settings is not None:
        app.dependency_overrides[get_settings] = lambda: app_settings

    app.include_router(health.router, tags=["health"])
    app.include_router(dashboard.router, tags=["dashboard"])
    app.include_router(applications.router, tags=["applications"])
    app.include_router(products.router, tags=["products"])
    app.include_router(safezones.router, tags=["safezones"])
    app.include_router(settings.router, tags=["settings"])
    app.include_router(calendar.router, tags=["calendar"])
    app.include_router(sgis.router, tags=["sgis"])

    return app


app = create_app()


def serve() -> None:
    import uvicorn

    cfg = get_settings()
    uvicorn.run("single_safety.main:app", host=cfg.host, port=cfg.port)
