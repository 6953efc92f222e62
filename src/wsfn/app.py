# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from pathlib import Path
from typing import Optional

from fastapi import FastAPI

from wsfn import __version__
from wsfn.auth.gate import AccessGate, AccessPolicy
from wsfn.config import WebService, default_web_service
from wsfn.services.cors import CORSMiddleware
from wsfn.services.proxy import ReverseProxyTable
from wsfn.services.redirects import RedirectMiddleware, RedirectService, load_redirects_csv
from wsfn.services.request_logging import RequestLoggingMiddleware
from wsfn.services.static import SafeStaticFiles
from wsfn.utils.logging import get_logger

logger = get_logger(__name__)


def build_redirects(ws: WebService) -> RedirectService:
    redirects = RedirectService.from_mapping(ws.redirects)
    if ws.redirects_csv:
        for target, destination in load_redirects_csv(ws.redirects_csv).items():
            redirects.add_redirect_route(target, destination)
    return redirects


def create_app(ws: Optional[WebService] = None) -> FastAPI:
    """Build the site application for ws.

    Requests pass through logging, CORS, redirects and the access gate
    before reaching the static files.
    """
    ws = ws or default_web_service()
    doc_root = Path(ws.htdocs or ".")

    app = FastAPI(title="wsfn", version=__version__, docs_url=None, redoc_url=None, openapi_url=None)
    app.state.web_service = ws
    app.state.redirects = build_redirects(ws)
    app.state.reverse_proxy = ReverseProxyTable.from_mapping(ws.reverse_proxy)
    app.state.access_policy = AccessPolicy.from_store(ws.access)

    app.mount("/", SafeStaticFiles(directory=doc_root, content_types=ws.content_types), name="htdocs")

    # add_middleware wraps, so the last one added runs first.
    app.add_middleware(AccessGate, policy=app.state.access_policy)
    if app.state.redirects.has_redirect_routes():
        app.add_middleware(RedirectMiddleware, service=app.state.redirects)
    if ws.cors is not None:
        app.add_middleware(CORSMiddleware, policy=ws.cors)
    app.add_middleware(RequestLoggingMiddleware)

    logger.info("Document root %s", doc_root)
    if app.state.access_policy.is_enforced:
        logger.info("Access control on %s", ", ".join(ws.access.routes.as_list()) or "(no routes)")
    return app
