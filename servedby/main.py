from __future__ import annotations

import logging
import os
from importlib.metadata import PackageNotFoundError
from importlib.metadata import version as dist_version
from pathlib import Path

from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from servedby.config import Settings
from servedby.lookups import Lookups
from servedby.metrics import MetricsMiddleware, metrics_endpoint
from servedby.observability import (
    LOGGER_NAME,
    AppHeadersMiddleware,
    RequestIdMiddleware,
)
from servedby.page import render_page

APP_NAME = "servedby"
APP_DESC = "Shows which node, datacenter, region and zone served the request."
APP_VERSION_FILE = Path(__file__).resolve().parents[1] / "VERSION"


def read_version_fallback() -> str:
    try:
        return APP_VERSION_FILE.read_text(encoding="utf-8").strip()
    except OSError:
        pass
    # Installed from a wheel: VERSION is not shipped, the dist metadata is
    try:
        return dist_version(APP_NAME)
    except PackageNotFoundError:
        return "0.0.0"


def human_version() -> str:
    commit = os.getenv("GIT_COMMIT", "unknown")
    return f"{APP_NAME} v{read_version_fallback()} ({commit})"


def _is_probe(request) -> bool:
    return request.url.path in ("/health", "/metrics")


def create_app(settings: Settings, lookups: Lookups | None = None) -> FastAPI:
    """
    Build the FastAPI app. `lookups` defaults to real clients built from
    `settings`; tests pass fakes.
    """
    lookups = lookups or Lookups.from_settings(settings)
    version = read_version_fallback()

    app = FastAPI(title=APP_NAME, description=APP_DESC, version=version)
    app.state.settings = settings
    app.state.lookups = lookups

    log = logging.getLogger(LOGGER_NAME)
    app.add_middleware(RequestIdMiddleware, logger=log, skip_predicate=_is_probe)
    app.add_middleware(AppHeadersMiddleware, name=APP_NAME, version=version)

    @app.get("/", response_class=HTMLResponse, tags=["core"])
    def index():
        # Sync handler: the blocking lookups run on the threadpool
        return HTMLResponse(content=render_page(lookups), status_code=200)

    @app.get("/health", tags=["core"])
    def health():
        return {"status": "ok"}

    if settings.metrics_enabled:
        app.add_middleware(MetricsMiddleware, skip_predicate=_is_probe)
        app.add_api_route("/metrics", metrics_endpoint, methods=["GET"], tags=["ops"])

    return app
