# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Static file serving that never exposes dot files (.git, .htaccess, ...)."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Optional, Union

from fastapi.responses import PlainTextResponse
from fastapi.staticfiles import StaticFiles
from starlette.types import Receive, Scope, Send

from wsfn.core.utils import is_dot_path
from wsfn.utils.logging import get_logger

logger = get_logger(__name__)

GZIP_SUFFIXES = (".json.gz", ".js.gz")


def check_doc_root(doc_root: Union[str, os.PathLike]) -> Path:
    if not str(doc_root):
        raise ValueError("document root not set")
    p = Path(doc_root)
    if not p.exists():
        raise FileNotFoundError(f"{str(p)!r} does not exist")
    if not p.is_dir():
        raise NotADirectoryError(f"{str(p)!r} is not a directory")
    return p


class SafeStaticFiles(StaticFiles):
    """StaticFiles that answers 403 for dot paths and applies content type overrides."""

    def __init__(
        self,
        directory: Union[str, os.PathLike],
        content_types: Optional[Dict[str, str]] = None,
        html: bool = True,
    ) -> None:
        super().__init__(directory=str(check_doc_root(directory)), html=html)
        self.content_types = {
            (k if k.startswith(".") else "." + k).lower(): v
            for k, v in (content_types or {}).items()
        }

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and is_dot_path(scope.get("path", "")):
            logger.info("Forbidden, requested a dot path %s", scope.get("path"))
            response = PlainTextResponse("Forbidden", status_code=403)
            await response(scope, receive, send)
            return
        await super().__call__(scope, receive, send)

    def file_response(self, full_path, stat_result, scope, status_code=200):
        response = super().file_response(full_path, stat_result, scope, status_code)
        name = str(full_path).lower()
        ext = os.path.splitext(name)[1]
        if ext == ".wasm":
            response.headers["Content-Type"] = "application/wasm"
        if name.endswith(GZIP_SUFFIXES):
            response.headers["Content-Encoding"] = "gzip"
        if ext in self.content_types:
            response.headers["Content-Type"] = self.content_types[ext]
        return response
