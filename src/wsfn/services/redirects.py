# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Prefix redirects.

Each application owns its RedirectService; there is no module level
redirect table.
"""

from __future__ import annotations

import csv
import os
import threading
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union
from urllib.parse import urlsplit, urlunsplit

from fastapi import Request
from fastapi.responses import RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from wsfn.core.utils import find_collision, join_url_path
from wsfn.errors import FormatError, RouteCollisionError
from wsfn.utils.logging import get_logger

logger = get_logger(__name__)


class RedirectService:
    """Target prefix -> destination prefix table."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._routes: Dict[str, str] = {}

    @classmethod
    def from_mapping(cls, m: Optional[Dict[str, str]]) -> "RedirectService":
        r = cls()
        for target, destination in (m or {}).items():
            r.add_redirect_route(target, destination)
        return r

    def add_redirect_route(self, target: str, destination: str) -> None:
        """Raises RouteCollisionError when target overlaps an existing target."""
        with self._lock:
            other = find_collision(target, sorted(self._routes))
            if other is not None:
                raise RouteCollisionError(target, other)
            self._routes[target] = destination

    def has_redirect_routes(self) -> bool:
        with self._lock:
            return bool(self._routes)

    def has_route(self, key: str) -> bool:
        with self._lock:
            return key in self._routes

    def route(self, key: str) -> Tuple[str, bool]:
        with self._lock:
            destination = self._routes.get(key)
        return (destination or "", destination is not None)

    def items(self) -> List[Tuple[str, str]]:
        with self._lock:
            return sorted(self._routes.items())

    def resolve(self, url: str) -> Optional[str]:
        """Return the redirect location for url, or None if no target matches."""
        parts = urlsplit(url)
        for target, destination in self.items():
            if not parts.path.startswith(target):
                continue
            remainder = parts.path[len(target):]
            dest = urlsplit(destination)
            new_path = join_url_path(dest.path or "/", remainder)
            if dest.scheme:
                return urlunsplit((dest.scheme, dest.netloc, new_path, parts.query, parts.fragment))
            return urlunsplit(("", "", new_path, parts.query, parts.fragment))
        return None


def load_redirects_csv(path: Union[str, os.PathLike]) -> Dict[str, str]:
    """Read a two column (target, destination) CSV file."""
    out: Dict[str, str] = {}
    with Path(path).open(newline="", encoding="utf-8") as fp:
        for lineno, row in enumerate(csv.reader(fp), start=1):
            cells = [c.strip() for c in row]
            if not cells or not cells[0] or cells[0].startswith("#"):
                continue
            if len(cells) < 2 or not cells[1]:
                raise FormatError(f"{str(path)!r}, line {lineno}: expected target,destination")
            out[cells[0]] = cells[1]
    return out


class RedirectMiddleware(BaseHTTPMiddleware):
    def __init__(self, app, service: RedirectService) -> None:
        super().__init__(app)
        self.service = service

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        url = request.url.path
        if request.url.query:
            url += "?" + request.url.query
        location = self.service.resolve(url)
        if location is None:
            return await call_next(request)
        logger.info("Redirecting %r to %r", url, location)
        return RedirectResponse(location, status_code=301)
