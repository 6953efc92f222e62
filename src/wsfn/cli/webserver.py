# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""webserver: a nimble web server for developing and testing static sites.

Examples:

    webserver start                            # ./webserver.toml or defaults
    webserver start /www/htdocs
    webserver start /etc/webserver.toml ./htdocs http://localhost:9011

    webserver init webserver.toml
    webserver htdocs webserver.toml /var/www/htdocs
    webserver url webserver.toml https://www.example.edu:443
    webserver cert_pem webserver.toml /etc/certs/cert.pem
    webserver key_pem webserver.toml /etc/certs/key.pem
    webserver access webserver.toml /etc/wsfn/access.toml
"""

from __future__ import annotations

import argparse
import sys
from typing import List, Optional

from wsfn import __version__
from wsfn.config import (
    WebService,
    apply_url,
    default_web_service,
    find_local_config,
    init_web_service,
    load_web_service,
    set_access_file,
    set_cert_pem,
    set_doc_root,
    set_key_pem,
    set_url,
)
from wsfn.errors import WsfnError
from wsfn.infra.structured import FORMATS
from wsfn.server import run
from wsfn.utils.logging import configure_logging


def resolve_start_args(params: List[str], base: Optional[WebService] = None) -> WebService:
    """Apply `start` parameters: config files, URLs and a document root, in order."""
    if base is not None:
        ws = base
    else:
        local = find_local_config()
        ws = load_web_service(local) if local else default_web_service()
    for param in params:
        if any(param.lower().endswith(ext) for ext in FORMATS):
            ws = load_web_service(param)
        elif "://" in param:
            apply_url(ws, param)
        else:
            ws.htdocs = param
    return ws


def cmd_init(args) -> int:
    init_web_service(args.file)
    return 0


def cmd_htdocs(args) -> int:
    set_doc_root(args.file, args.value)
    return 0


def cmd_url(args) -> int:
    set_url(args.file, args.value)
    return 0


def cmd_cert_pem(args) -> int:
    set_cert_pem(args.file, args.value)
    return 0


def cmd_key_pem(args) -> int:
    set_key_pem(args.file, args.value)
    return 0


def cmd_access(args) -> int:
    set_access_file(args.file, args.value)
    return 0


def cmd_start(args) -> int:
    ws = resolve_start_args(args.params)
    run(ws, log_level=args.log_level)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webserver",
        description="A nimble web server for static websites.",
        epilog=__doc__.split("Examples:", 1)[1] if __doc__ else None,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--quiet", action="store_true", help="suppress error messages")
    parser.add_argument("--log-level", default="INFO", help="logging level (default INFO)")
    sub = parser.add_subparsers(dest="verb", metavar="VERB")
    sub.required = True

    p = sub.add_parser("init", help="create a configuration file")
    p.add_argument("file", nargs="?", default="webserver.toml")
    p.set_defaults(func=cmd_init)

    for verb, func, metavar, helptext in (
        ("htdocs", cmd_htdocs, "DOCROOT", "set the document root"),
        ("url", cmd_url, "URL", "set the scheme, host and port to listen on"),
        ("cert_pem", cmd_cert_pem, "CERT_PEM", "set the cert.pem used for TLS"),
        ("key_pem", cmd_key_pem, "KEY_PEM", "set the key.pem used for TLS"),
        ("access", cmd_access, "ACCESS_FILE", "use an access file (see webaccess)"),
    ):
        p = sub.add_parser(verb, help=helptext)
        p.add_argument("file")
        p.add_argument("value", metavar=metavar)
        p.set_defaults(func=func)

    p = sub.add_parser("start", help="start the web service")
    p.add_argument("params", nargs="*", metavar="CONFIG|DOCROOT|URL")
    p.set_defaults(func=cmd_start)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    try:
        return args.func(args)
    except (WsfnError, OSError, ValueError) as err:
        if not args.quiet:
            print(f"{parser.prog} {args.verb} failed, {err}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
