# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request/response logging middleware."""

from __future__ import annotations

import time

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from wsfn.utils.logging import get_logger

logger = get_logger("wsfn.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log one line per request and one per response."""

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        start = time.perf_counter()
        path = request.url.path
        method = request.method
        client = request.client.host if request.client else "-"
        agent = request.headers.get("User-Agent", "")
        query = request.url.query

        if query:
            logger.info("Request: %s Path: %s RemoteAddr: %s UserAgent: %s Query: %s", method, path, client, agent, query)
        else:
            logger.info("Request: %s Path: %s RemoteAddr: %s UserAgent: %s", method, path, client, agent)

        try:
            response = await call_next(request)
        except Exception:
            logger.exception("Response: %s Path: %s RemoteAddr: %s Status: 500", method, path, client)
            raise

        duration_ms = round((time.perf_counter() - start) * 1000, 3)
        logger.info(
            "Response: %s Path: %s RemoteAddr: %s Status: %d (%sms)",
            method,
            path,
            client,
            response.status_code,
            duration_ms,
        )
        return response


__all__ = ["RequestLoggingMiddleware"]
