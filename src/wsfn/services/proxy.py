# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import threading
from typing import Dict, Iterator, List, Optional, Tuple
from urllib.parse import urlsplit

from wsfn.core.utils import find_collision, normalize_prefix
from wsfn.errors import RouteCollisionError


class ReverseProxyTable:
    """Path prefix -> upstream base URL, e.g. "/api/" -> "http://localhost:9000/".

    Only the table is kept here; forwarding is left to the host server.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._routes: Dict[str, str] = {}

    @classmethod
    def from_mapping(cls, m: Optional[Dict[str, str]]) -> "ReverseProxyTable":
        t = cls()
        for prefix, upstream in (m or {}).items():
            t.add(prefix, upstream)
        return t

    def add(self, prefix: str, upstream: str) -> str:
        p = normalize_prefix(prefix, trailing_slash=False)
        u = urlsplit(upstream)
        if u.scheme not in ("http", "https") or not u.netloc:
            raise ValueError(f"{upstream!r} is not an http(s) URL")
        with self._lock:
            other = find_collision(p, sorted(self._routes))
            if other is not None:
                raise RouteCollisionError(p, other)
            self._routes[p] = upstream
        return p

    def remove(self, prefix: str) -> bool:
        p = normalize_prefix(prefix, trailing_slash=False)
        with self._lock:
            return self._routes.pop(p, None) is not None

    def lookup(self, path: str) -> Optional[str]:
        """Upstream URL for path with the part after the prefix appended."""
        for prefix, upstream in self.items():
            if path.startswith(prefix):
                rest = path[len(prefix):]
                if upstream.endswith("/") and rest.startswith("/"):
                    rest = rest[1:]
                elif not upstream.endswith("/") and rest and not rest.startswith("/"):
                    rest = "/" + rest
                return upstream + rest
        return None

    def items(self) -> List[Tuple[str, str]]:
        with self._lock:
            return sorted(self._routes.items())

    def to_dict(self) -> Dict[str, str]:
        return dict(self.items())

    def __iter__(self) -> Iterator[str]:
        return iter([p for p, _ in self.items()])

    def __len__(self) -> int:
        with self._lock:
            return len(self._routes)
