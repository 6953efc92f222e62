# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Logging setup shared by the server and the command line tools."""

from __future__ import annotations

import logging

DEFAULT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO", fmt: str = DEFAULT_FORMAT) -> None:
    """Configure application-wide logging on stderr."""

    logging_level = getattr(logging, str(level or "INFO").upper(), logging.INFO)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(fmt))

    logging.basicConfig(level=logging_level, handlers=[handler], force=True)


def get_logger(name: str = "wsfn") -> logging.Logger:
    """Return a logger instance."""

    return logging.getLogger(name)
