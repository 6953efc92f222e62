# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from fastapi import Request
from fastapi.responses import Response
from starlette.middleware.base import BaseHTTPMiddleware


@dataclass
class CORSPolicy:
    """CORS headers to attach to every response.

    See https://developer.mozilla.org/en-US/docs/Web/HTTP/CORS
    """

    origin: str = ""
    options: List[str] = field(default_factory=list)
    headers: List[str] = field(default_factory=list)
    exposed_headers: List[str] = field(default_factory=list)
    allow_credentials: bool = False

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]]) -> Optional["CORSPolicy"]:
        if not raw:
            return None
        return cls(
            origin=str(raw.get("origin") or ""),
            options=_str_list(raw.get("options")),
            headers=_str_list(raw.get("headers")),
            exposed_headers=_str_list(raw.get("exposed_headers")),
            allow_credentials=bool(raw.get("allow_credentials", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {k: v for k, v in asdict(self).items() if v}

    def response_headers(self) -> Dict[str, str]:
        out: Dict[str, str] = {}
        if self.origin:
            out["Access-Control-Allow-Origin"] = self.origin
        if self.options:
            out["Access-Control-Allow-Methods"] = ",".join(self.options)
        if self.headers:
            out["Access-Control-Allow-Headers"] = ",".join(self.headers)
        if self.exposed_headers:
            out["Access-Control-Expose-Headers"] = ",".join(self.exposed_headers)
        if self.allow_credentials:
            out["Access-Control-Allow-Credentials"] = "true"
        return out


def _str_list(value: Any) -> List[str]:
    if not value:
        return []
    if isinstance(value, str):
        return [v.strip() for v in value.split(",") if v.strip()]
    return [str(v) for v in value]


class CORSMiddleware(BaseHTTPMiddleware):
    """Set the configured CORS headers; answer OPTIONS preflights directly."""

    def __init__(self, app, policy: CORSPolicy) -> None:
        super().__init__(app)
        self.policy = policy

    async def dispatch(self, request: Request, call_next):  # type: ignore[override]
        headers = self.policy.response_headers()
        if request.method == "OPTIONS":
            return Response(status_code=200, headers=headers)
        response = await call_next(request)
        for name, value in headers.items():
            response.headers[name] = value
        return response
