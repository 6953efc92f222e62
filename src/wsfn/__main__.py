"""wsfn entrypoint.

Run with:
  python -m wsfn

Serves WSFN_CONFIG (or ./webserver.toml, ./webserver.json, or the
defaults) with WSFN_HTDOCS, WSFN_HOST and WSFN_PORT as overrides.
"""

import os

from wsfn.cli.webserver import resolve_start_args
from wsfn.config import default_service
from wsfn.server import run
from wsfn.utils.logging import configure_logging


def main() -> None:
    log_level = os.getenv("WSFN_LOG_LEVEL", "INFO")
    configure_logging(log_level)
    params = [p for p in (os.getenv("WSFN_CONFIG", ""), os.getenv("WSFN_HTDOCS", "")) if p]
    ws = resolve_start_args(params)
    host = os.getenv("WSFN_HOST")
    port = os.getenv("WSFN_PORT")
    if host or port:
        if ws.http is None:
            ws.http = default_service()
        ws.http.host = host or ws.http.host
        ws.http.port = port or ws.http.port
    run(ws, log_level=log_level)

if __name__ == "__main__":
    main()
