# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Credential store: users, their salted keys and the protected routes.

The store is persisted as TOML, JSON or YAML (picked by extension) with
this shape::

    auth_type = "basic"
    auth_name = "Staff only"
    encryption = "argon2id"
    routes = ["/private/"]

    [access.jane]
    salt = "<base64>"
    key = "<base64>"

The file holds secrets and is always written with mode 0600.
"""

from __future__ import annotations

import base64
import binascii
import os
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from wsfn.auth.passwords import SALT_SIZE, HashAlgorithm, hash_password, verify_password
from wsfn.auth.routes import RouteTable
from wsfn.errors import AuthConfigError, EntropyError, FormatError, RouteCollisionError
from wsfn.infra.structured import dump_structured, load_structured
from wsfn.utils.logging import get_logger

logger = get_logger(__name__)

DEFAULT_AUTH_TYPE = "basic"
DEFAULT_ENCRYPTION = HashAlgorithm.ARGON2ID.value

# Derived against for unknown users so both failure paths cost the same.
_DUMMY_SALT = b"\x00" * SALT_SIZE


@dataclass(frozen=True)
class Secret:
    salt: bytes
    key: bytes


@dataclass(eq=False)
class CredentialStore:
    auth_type: str = DEFAULT_AUTH_TYPE
    auth_name: str = ""
    encryption: str = ""
    entries: Dict[str, Secret] = field(default_factory=dict)
    routes: RouteTable = field(default_factory=RouteTable)
    path: Optional[Path] = None

    def __post_init__(self) -> None:
        self._lock = threading.RLock()

    # -- users -------------------------------------------------------------

    def enroll(self, username: str, password: str) -> bool:
        """Add or replace username with a freshly salted key for password.

        Returns False when no salt could be generated or the store's
        encryption cannot be used for new passwords.
        """
        u = str(username or "")
        if not u:
            raise ValueError("username must not be empty")
        with self._lock:
            if not self.encryption:
                self.encryption = DEFAULT_ENCRYPTION
            tag = self.encryption
        try:
            salt, key = hash_password(tag, password)
        except (EntropyError, AuthConfigError) as err:
            logger.error("Failed to update %s, %s", u, err)
            return False
        with self._lock:
            self.entries[u] = Secret(salt=salt, key=key)
        logger.info("Updated credentials for %s", u)
        return True

    def remove(self, username: str) -> bool:
        """Delete username. Returns False if it was not present."""
        with self._lock:
            if username not in self.entries:
                return False
            del self.entries[username]
        logger.info("Removed %s", username)
        return True

    def usernames(self) -> List[str]:
        with self._lock:
            return sorted(u for u in self.entries if u)

    def verify_login(self, username: str, password: str) -> bool:
        """Check a username/password pair against the stored key."""
        with self._lock:
            secret = self.entries.get(username) if username else None
            tag = self.encryption
        if secret is None:
            # Spend the same work as a real check, then refuse.
            algorithm = HashAlgorithm.from_tag(tag)
            if algorithm is not HashAlgorithm.UNSUPPORTED and not algorithm.deprecated:
                algorithm.derive(password, _DUMMY_SALT)
            return False
        return verify_password(tag, password, secret.salt, secret.key)

    # -- routes ------------------------------------------------------------

    def add_route(self, prefix: str) -> str:
        return self.routes.add_route(prefix)

    def remove_route(self, prefix: str) -> bool:
        return self.routes.remove_route(prefix)

    def is_protected(self, path: str) -> bool:
        return self.routes.matches(path)

    # -- HTTP --------------------------------------------------------------

    def challenge(self) -> str:
        """Value for the WWW-Authenticate header."""
        scheme = (self.auth_type or DEFAULT_AUTH_TYPE).strip()
        scheme = scheme[:1].upper() + scheme[1:]
        realm = (self.auth_name or "").replace("\\", "\\\\").replace('"', '\\"')
        return f'{scheme} realm="{realm}"'

    # -- persistence -------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        with self._lock:
            access = {
                u: {"salt": _b64(s.salt), "key": _b64(s.key)}
                for u, s in sorted(self.entries.items())
            }
            return {
                "auth_type": self.auth_type,
                "auth_name": self.auth_name,
                "encryption": self.encryption,
                "access": access,
                "routes": self.routes.as_list(),
            }

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], *, source: str = "<dict>") -> "CredentialStore":
        if not isinstance(raw, dict):
            raise FormatError(f"{source!r}, expected a mapping")
        access = raw.get("access") or {}
        if not isinstance(access, dict):
            raise FormatError(f"{source!r}, 'access' must be a mapping of users")
        entries: Dict[str, Secret] = {}
        for uname, udata in access.items():
            username = str(uname)
            if not username:
                continue
            if not isinstance(udata, dict):
                raise FormatError(f"{source!r}, entry for {username!r} must be a mapping")
            entries[username] = Secret(
                salt=_to_bytes(udata.get("salt"), source=source, what=f"{username}.salt"),
                key=_to_bytes(udata.get("key"), source=source, what=f"{username}.key"),
            )
        routes_raw = raw.get("routes") or []
        if not isinstance(routes_raw, list) or not all(isinstance(r, str) for r in routes_raw):
            raise FormatError(f"{source!r}, 'routes' must be a list of strings")
        try:
            routes = RouteTable(routes_raw)
        except RouteCollisionError as err:
            raise FormatError(f"{source!r}, {err}") from err
        return cls(
            auth_type=str(raw.get("auth_type") or DEFAULT_AUTH_TYPE),
            auth_name=str(raw.get("auth_name") or ""),
            encryption=str(raw.get("encryption") or ""),
            entries=entries,
            routes=routes,
        )

    def save(self, path: Union[str, os.PathLike, None] = None) -> Path:
        """Write the store to path (default: where it was loaded from)."""
        target = Path(path) if path is not None else self.path
        if target is None:
            raise ValueError("no path given and the store was not loaded from a file")
        dump_structured(target, self.to_dict(), mode=0o600)
        self.path = target
        return target


def load_store(path: Union[str, os.PathLike]) -> CredentialStore:
    """Load a credential store.

    FileNotFoundError if path is missing, FormatError for unknown
    extensions or malformed content.
    """
    p = Path(path)
    raw = load_structured(p)
    store = CredentialStore.from_dict(raw, source=str(p))
    store.path = p
    algorithm = HashAlgorithm.from_tag(store.encryption)
    if store.encryption and algorithm is HashAlgorithm.UNSUPPORTED:
        logger.warning("%s uses unsupported encryption %r, all logins will fail", p, store.encryption)
    elif algorithm.deprecated:
        logger.warning("%s uses deprecated encryption %r, re-enroll users with argon2id", p, store.encryption)
    return store


def save_store(store: CredentialStore, path: Union[str, os.PathLike]) -> Path:
    return store.save(path)


def init_store(path: Union[str, os.PathLike], *, auth_name: str = "") -> CredentialStore:
    """Create an empty argon2id store at path. Refuses to overwrite."""
    p = Path(path)
    if p.exists():
        raise FileExistsError(f"{str(p)!r} already exists")
    store = CredentialStore(
        auth_type=DEFAULT_AUTH_TYPE,
        auth_name=auth_name,
        encryption=DEFAULT_ENCRYPTION,
    )
    store.save(p)
    return store


def _b64(b: bytes) -> str:
    return base64.b64encode(b).decode("ascii")


def _to_bytes(value: Any, *, source: str, what: str) -> bytes:
    if value is None:
        return b""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    if isinstance(value, str):
        try:
            return base64.b64decode(value.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as err:
            raise FormatError(f"{source!r}, {what} is not valid base64") from err
    # Older TOML tooling wrote byte strings as arrays of integers.
    if isinstance(value, list) and all(isinstance(n, int) and 0 <= n <= 255 for n in value):
        return bytes(value)
    raise FormatError(f"{source!r}, {what} must be base64 text or a list of bytes")
