# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Web service configuration (webserver.toml / webserver.json)."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional, Union
from urllib.parse import urlsplit

from wsfn.auth.store import CredentialStore, load_store
from wsfn.errors import FormatError
from wsfn.infra.structured import detect_format, dump_structured, load_structured, write_private
from wsfn.services.cors import CORSPolicy

PathLike = Union[str, os.PathLike]

DEFAULT_CONFIG_NAMES = ("webserver.toml", "webserver.json")
DEFAULT_PORTS = {"http": "80", "https": "443"}


@dataclass
class Service:
    """One listener (http or https)."""

    scheme: str = "http"
    host: str = ""
    port: str = ""
    cert_pem: str = ""
    key_pem: str = ""

    def hostname(self) -> str:
        out = self.host
        if self.port:
            out += ":" + self.port
        return out

    def __str__(self) -> str:
        prefix = f"{self.scheme}://" if self.scheme else ""
        return prefix + self.hostname()

    @classmethod
    def from_dict(cls, raw: Optional[Dict[str, Any]], scheme: str, *, source: str = "<dict>") -> Optional["Service"]:
        if raw is None:
            return None
        if not isinstance(raw, dict):
            raise FormatError(f"{source!r}, [{scheme}] must be a table")
        return cls(
            scheme=scheme,
            host=str(raw.get("host") or ""),
            port=str(raw.get("port") or ""),
            cert_pem=str(raw.get("cert_pem") or ""),
            key_pem=str(raw.get("key_pem") or ""),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "scheme": self.scheme,
            "host": self.host,
            "port": self.port,
            "cert_pem": self.cert_pem,
            "key_pem": self.key_pem,
        }


def default_service() -> Service:
    """http on localhost:8000."""
    return Service(scheme="http", host="localhost", port="8000")


@dataclass
class WebService:
    htdocs: str = "."
    http: Optional[Service] = None
    https: Optional[Service] = None
    access_file: str = ""
    access: Optional[CredentialStore] = None
    cors: Optional[CORSPolicy] = None
    content_types: Dict[str, str] = field(default_factory=dict)
    redirects_csv: str = ""
    redirects: Dict[str, str] = field(default_factory=dict)
    reverse_proxy: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, raw: Dict[str, Any], *, source: str = "<dict>") -> "WebService":
        for name in ("content_types", "redirects", "reverse_proxy"):
            if raw.get(name) is not None and not isinstance(raw.get(name), dict):
                raise FormatError(f"{source!r}, {name!r} must be a table")
        access_raw = raw.get("access")
        return cls(
            htdocs=str(raw.get("htdocs") or "."),
            http=Service.from_dict(raw.get("http"), "http", source=source),
            https=Service.from_dict(raw.get("https"), "https", source=source),
            access_file=str(raw.get("access_file") or ""),
            access=CredentialStore.from_dict(access_raw, source=source) if access_raw else None,
            cors=CORSPolicy.from_dict(raw.get("cors")),
            content_types={str(k): str(v) for k, v in (raw.get("content_types") or {}).items()},
            redirects_csv=str(raw.get("redirects_csv") or ""),
            redirects={str(k): str(v) for k, v in (raw.get("redirects") or {}).items()},
            reverse_proxy={str(k): str(v) for k, v in (raw.get("reverse_proxy") or {}).items()},
        )

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"htdocs": self.htdocs}
        if self.http is not None:
            out["http"] = self.http.to_dict()
        if self.https is not None:
            out["https"] = self.https.to_dict()
        if self.access_file:
            out["access_file"] = self.access_file
        elif self.access is not None:
            out["access"] = self.access.to_dict()
        if self.cors is not None:
            out["cors"] = self.cors.to_dict()
        if self.content_types:
            out["content_types"] = dict(self.content_types)
        if self.redirects_csv:
            out["redirects_csv"] = self.redirects_csv
        if self.redirects:
            out["redirects"] = dict(self.redirects)
        if self.reverse_proxy:
            out["reverse_proxy"] = dict(self.reverse_proxy)
        return out

    def dump(self, path: PathLike) -> None:
        """Write the configuration. An access store loaded from access_file is not inlined."""
        dump_structured(path, self.to_dict(), mode=0o600)


def load_web_service(path: PathLike) -> WebService:
    """Load webserver.toml / .json; also loads access_file when set."""
    raw = load_structured(path)
    ws = WebService.from_dict(raw, source=str(path))
    if ws.access_file:
        ws.access = load_store(ws.access_file)
    return ws


def default_web_service() -> WebService:
    return WebService(htdocs=".", http=default_service())


def find_local_config(directory: PathLike = ".") -> Optional[Path]:
    for name in DEFAULT_CONFIG_NAMES:
        p = Path(directory) / name
        if p.exists():
            return p
    return None


def init_web_service(path: PathLike = "webserver.toml") -> Path:
    """Write the commented default configuration. Refuses to overwrite."""
    p = Path(path)
    if p.exists():
        raise FileExistsError(f"{str(p)!r} already exists")
    fmt = detect_format(p)
    src = default_init()
    if fmt == "toml":
        write_private(p, src, mode=0o600)
    else:
        # Comments do not survive the conversion.
        dump_structured(p, tomllib.loads(src), mode=0o600)
    return p


def set_doc_root(path: PathLike, doc_root: str) -> WebService:
    ws = load_web_service(path)
    ws.htdocs = doc_root
    ws.dump(path)
    return ws


def set_access_file(path: PathLike, access_file: str) -> WebService:
    if not Path(access_file).exists():
        raise FileNotFoundError(f"{access_file!r} does not exist")
    ws = load_web_service(path)
    ws.access_file = access_file
    ws.access = load_store(access_file)
    ws.dump(path)
    return ws


def apply_url(ws: WebService, uri: str) -> Service:
    """Point the http or https listener (picked by the URL scheme) at uri."""
    u = urlsplit(uri)
    if u.scheme not in DEFAULT_PORTS:
        raise ValueError(f"{u.scheme!r} is an unsupported scheme")
    service = getattr(ws, u.scheme) or Service(scheme=u.scheme)
    service.scheme = u.scheme
    service.host = u.hostname or ""
    service.port = str(u.port) if u.port else DEFAULT_PORTS[u.scheme]
    setattr(ws, u.scheme, service)
    return service


def set_url(path: PathLike, uri: str) -> WebService:
    ws = load_web_service(path)
    apply_url(ws, uri)
    ws.dump(path)
    return ws


def set_cert_pem(path: PathLike, cert_pem: str) -> WebService:
    return _set_tls_file(path, "cert_pem", cert_pem)


def set_key_pem(path: PathLike, key_pem: str) -> WebService:
    return _set_tls_file(path, "key_pem", key_pem)


def _set_tls_file(path: PathLike, attr: str, value: str) -> WebService:
    if not Path(value).exists():
        raise FileNotFoundError(f"{value!r} does not exist")
    ws = load_web_service(path)
    if ws.https is None:
        ws.https = Service(scheme="https")
    setattr(ws.https, attr, value)
    ws.dump(path)
    return ws


def default_init() -> str:
    return DEFAULT_INIT


DEFAULT_INIT = """\
#
# A TOML file for configuring **webserver**.
# Comments start with "#"
#

#
# Document root for the website. It is relative to the current
# working directory unless a full path is given. A period or
# empty string means the current working directory.
#
htdocs = "htdocs"

#
# If using access restrictions (basic auth) set the file for
# managing access. The file is managed with "webaccess".
# Uncomment to use.
#
#access_file = "access.toml"

#
# Redirects kept in a separate CSV file (target,destination).
# Uncomment to use.
#
#redirects_csv = "redirects.csv"

# Standard http support
[http]
host = "localhost"
port = "8000"

# HTTPS support, uncomment to use
#[https]
#cert_pem = "etc/certs/cert.pem"
#key_pem = "etc/certs/key.pem"
#host = "localhost"
#port = "8443"

#
# CORS policy, see https://developer.mozilla.org/en-US/docs/Web/HTTP/CORS
# Uncomment to use.
#
#[cors]
#origin = "http://foo.example:8000"
#allow_credentials = true
#options = [ "POST", "GET" ]
#headers = [ "X-PINGPONG", "Content-Type" ]

#
# File extensions mapped to mime types.
# Uncomment to use.
#
#[content_types]
#".json" = "application/json"
#".toml" = "text/plain+x-toml"

#
# Redirects kept in this file.
# Uncomment to use.
#
#[redirects]
#"/bad-path/" = "/good-path/"

#
# Reverse proxy table.
# Uncomment to use.
#
#[reverse_proxy]
#"/api/" = "http://localhost:9000/"
"""
