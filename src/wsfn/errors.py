# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations


class WsfnError(Exception):
    """Base class for errors raised by wsfn."""


class FormatError(WsfnError, ValueError):
    """Unsupported file extension or malformed file content."""


class EntropyError(WsfnError):
    """The host could not produce random bytes for a salt."""


class AuthConfigError(WsfnError):
    """The credential store names a hash algorithm we do not support."""


class NotFoundError(WsfnError, KeyError):
    """A user or route was not found."""

    def __str__(self) -> str:
        # KeyError quotes its argument; keep messages readable.
        return str(self.args[0]) if self.args else ""


class RouteCollisionError(WsfnError, ValueError):
    """Two path prefixes overlap (one is a prefix of the other)."""

    def __init__(self, prefix: str, existing: str) -> None:
        super().__init__(f"{prefix!r} collides with {existing!r}")
        self.prefix = prefix
        self.existing = existing
