# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Run a WebService with uvicorn (http, https, or both)."""

from __future__ import annotations

import asyncio
from typing import List

import uvicorn

from wsfn.app import create_app
from wsfn.config import Service, WebService, default_service
from wsfn.utils.logging import get_logger

logger = get_logger(__name__)


def _config_for(app, service: Service, log_level: str) -> uvicorn.Config:
    kwargs = {
        "host": service.host or "localhost",
        "port": int(service.port or (443 if service.scheme == "https" else 8000)),
        "log_level": log_level.lower(),
    }
    if service.scheme == "https":
        # TLS is handed straight to uvicorn.
        kwargs["ssl_certfile"] = service.cert_pem or None
        kwargs["ssl_keyfile"] = service.key_pem or None
    return uvicorn.Config(app, **kwargs)


def server_configs(ws: WebService, log_level: str = "info") -> List[uvicorn.Config]:
    app = create_app(ws)
    services = [s for s in (ws.http, ws.https) if s is not None] or [default_service()]
    return [_config_for(app, s, log_level) for s in services]


async def _serve(configs: List[uvicorn.Config]) -> None:
    servers = [uvicorn.Server(c) for c in configs]
    await asyncio.gather(*(s.serve() for s in servers))


def run(ws: WebService, log_level: str = "info") -> None:
    """Serve ws until interrupted."""
    configs = server_configs(ws, log_level)
    for service in (ws.http, ws.https):
        if service is not None:
            logger.info("Listening for %s", service)
    asyncio.run(_serve(configs))
