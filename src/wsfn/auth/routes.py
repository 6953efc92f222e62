# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import threading
from typing import Iterable, Iterator, List

from wsfn.core.utils import find_collision, normalize_prefix
from wsfn.errors import RouteCollisionError


class RouteTable:
    """Sorted set of path prefixes that require authentication.

    No prefix may be a prefix of another one, so a request path is covered
    by at most one protected scope.
    """

    def __init__(self, routes: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._routes: List[str] = []
        # Stored routes are taken as written, apart from the leading slash.
        for route in routes:
            self.add_route(route, trailing_slash=False)

    def add_route(self, prefix: str, *, trailing_slash: bool = True) -> str:
        """Insert prefix and return its normalized form.

        Raises RouteCollisionError if it overlaps an existing route.
        """
        p = normalize_prefix(prefix, trailing_slash=trailing_slash)
        with self._lock:
            other = find_collision(p, self._routes)
            if other is not None:
                raise RouteCollisionError(p, other)
            self._routes.append(p)
            self._routes.sort()
        return p

    def remove_route(self, prefix: str) -> bool:
        """Remove an exact route. Returns False if it was not in the table."""
        p = normalize_prefix(prefix, trailing_slash=False)
        with self._lock:
            if p not in self._routes:
                return False
            self._routes.remove(p)
        return True

    def matches(self, path: str) -> bool:
        """True if path starts with any protected prefix (plain string test)."""
        with self._lock:
            routes = tuple(self._routes)
        return any(path.startswith(route) for route in routes)

    def as_list(self) -> List[str]:
        with self._lock:
            return list(self._routes)

    def __iter__(self) -> Iterator[str]:
        return iter(self.as_list())

    def __len__(self) -> int:
        with self._lock:
            return len(self._routes)

    def __contains__(self, prefix: object) -> bool:
        with self._lock:
            return prefix in self._routes

    def __repr__(self) -> str:
        return f"RouteTable({self.as_list()!r})"
