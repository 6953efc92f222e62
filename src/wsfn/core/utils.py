# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import posixpath
import re
from typing import Iterable, Optional

_SLASHES = re.compile(r"/{2,}")


def normalize_prefix(prefix: str, *, trailing_slash: bool = True) -> str:
    """Make sure a route prefix starts with "/" (and optionally ends with one)."""
    p = str(prefix or "").strip()
    if not p.startswith("/"):
        p = "/" + p
    if trailing_slash and not p.endswith("/"):
        p += "/"
    return p


def find_collision(prefix: str, existing: Iterable[str]) -> Optional[str]:
    """Return the first entry in existing that overlaps prefix, or None."""
    for other in existing:
        if prefix.startswith(other) or other.startswith(prefix):
            return other
    return None


def is_dot_path(path: str) -> bool:
    """True if any segment of path is a dot file or directory (e.g. /.git/config)."""
    for part in posixpath.normpath(path or "/").split("/"):
        if part.startswith(".") and not part.startswith("..") and len(part) > 1:
            return True
    return False


def join_url_path(destination: str, remainder: str) -> str:
    """Join a destination prefix and the rest of a path, like a cleaned path join."""
    if not remainder:
        return destination
    joined = posixpath.normpath(posixpath.join(destination or "/", remainder.lstrip("/")))
    if remainder.endswith("/") and not joined.endswith("/"):
        joined += "/"
    return joined


def canonical_path(path: str) -> str:
    """Clean a request path the way a file lookup will see it.

    Repeated slashes collapse and "." and ".." segments are resolved.
    A trailing slash is kept.
    """
    p = "/" + (path or "").lstrip("/")
    cleaned = posixpath.normpath(_SLASHES.sub("/", p))
    if p.endswith("/") and not cleaned.endswith("/"):
        cleaned += "/"
    return cleaned
