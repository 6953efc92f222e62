# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""HTTP Basic-Auth gate for protected path prefixes."""

from __future__ import annotations

import base64
import binascii
import enum
from dataclasses import dataclass
from typing import Optional, Tuple

from fastapi import Request
from fastapi.responses import PlainTextResponse
from starlette.concurrency import run_in_threadpool
from starlette.middleware.base import BaseHTTPMiddleware

from wsfn.auth.store import CredentialStore
from wsfn.core.utils import canonical_path
from wsfn.utils.logging import get_logger

logger = get_logger(__name__)


class Decision(enum.Enum):
    NOT_PROTECTED = "not_protected"
    AUTHORIZED = "authorized"
    CREDENTIALS_ABSENT = "credentials_absent"
    UNAUTHORIZED = "unauthorized"

    @property
    def allowed(self) -> bool:
        return self in (Decision.NOT_PROTECTED, Decision.AUTHORIZED)


@dataclass(frozen=True)
class AccessPolicy:
    """Either no access control at all, or a store being enforced."""

    store: Optional[CredentialStore] = None

    @classmethod
    def none(cls) -> "AccessPolicy":
        return cls(None)

    @classmethod
    def enforced(cls, store: CredentialStore) -> "AccessPolicy":
        if store is None:
            raise ValueError("an enforced policy needs a credential store")
        return cls(store)

    @classmethod
    def from_store(cls, store: Optional[CredentialStore]) -> "AccessPolicy":
        return cls.none() if store is None else cls.enforced(store)

    @property
    def is_enforced(self) -> bool:
        return self.store is not None


def parse_basic_auth(header: Optional[str]) -> Optional[Tuple[str, str]]:
    """Decode "Basic base64(user:password)". Anything malformed gives None."""
    if not header:
        return None
    scheme, _, param = header.strip().partition(" ")
    if scheme.lower() != "basic" or not param.strip():
        return None
    try:
        decoded = base64.b64decode(param.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError):
        return None
    username, sep, password = decoded.partition(":")
    if not sep:
        return None
    return username, password


def authorize(policy: AccessPolicy, path: str, authorization: Optional[str]) -> Decision:
    """Decide whether a request for path may proceed.

    path is cleaned first, so "//secure/x" or "/a/../secure/x" are
    checked as "/secure/x", the same file the static handler serves.
    """
    store = policy.store
    if store is None or not store.is_protected(canonical_path(path)):
        return Decision.NOT_PROTECTED
    creds = parse_basic_auth(authorization)
    if creds is None:
        return Decision.CREDENTIALS_ABSENT
    username, password = creds
    if store.verify_login(username, password):
        return Decision.AUTHORIZED
    return Decision.UNAUTHORIZED


def unauthorized_response(store: CredentialStore) -> PlainTextResponse:
    return PlainTextResponse(
        "Unauthorized",
        status_code=401,
        headers={"WWW-Authenticate": store.challenge()},
    )


class AccessGate(BaseHTTPMiddleware):
    """Require valid Basic-Auth credentials on the store's routes.

    With AccessPolicy.none() every request goes straight through.
    """

    def __init__(self, app, policy: Optional[AccessPolicy] = None) -> None:
        super().__init__(app)
        self.policy = policy or AccessPolicy.none()

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        if not self.policy.is_enforced:
            return await call_next(request)

        path = request.url.path
        # The KDF is slow on purpose, keep it off the event loop.
        decision = await run_in_threadpool(
            authorize, self.policy, path, request.headers.get("Authorization")
        )
        if decision.allowed:
            return await call_next(request)

        logger.info(
            "Access denied %s %s (%s) from %s",
            request.method,
            path,
            decision.value,
            request.client.host if request.client else "-",
        )
        return unauthorized_response(self.policy.store)


__all__ = ["AccessGate", "AccessPolicy", "Decision", "authorize", "parse_basic_auth"]
