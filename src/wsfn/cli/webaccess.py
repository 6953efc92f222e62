# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""webaccess: manage an access file (users and protected routes).

The access file plays the role of Apache's htpasswd file, and also
records which routes are protected and the realm presented to browsers.

Examples:

    webaccess init access.toml
    webaccess update access.toml Jane.Doe      # prompts for a password
    webaccess remove access.toml Jane.Doe
    webaccess list access.toml
    webaccess test access.toml Jane.Doe        # prompts for a password
    webaccess routes update access.toml /api/ /private
    webaccess routes list access.toml
    webaccess routes remove access.toml /private/
"""

from __future__ import annotations

import argparse
import sys
from getpass import getpass
from typing import Callable, List, Optional

from wsfn import __version__
from wsfn.auth.store import init_store, load_store
from wsfn.errors import NotFoundError, WsfnError
from wsfn.utils.logging import configure_logging

PasswordPrompt = Callable[[str], str]


def cmd_init(args, prompt: PasswordPrompt) -> int:
    init_store(args.file, auth_name=args.realm or "")
    return 0


def cmd_update(args, prompt: PasswordPrompt) -> int:
    store = load_store(args.file)
    password = prompt("Enter a password: ")
    if args.confirm and prompt("Repeat password: ") != password:
        raise WsfnError("passwords do not match")
    if not store.enroll(args.username, password):
        raise WsfnError(f"failed to update {args.username}")
    store.save()
    return 0


def cmd_remove(args, prompt: PasswordPrompt) -> int:
    store = load_store(args.file)
    if not store.remove(args.username):
        raise NotFoundError(f"failed to find {args.username}")
    store.save()
    return 0


def cmd_list(args, prompt: PasswordPrompt) -> int:
    store = load_store(args.file)
    for username in store.usernames():
        print(username)
    return 0


def cmd_test(args, prompt: PasswordPrompt) -> int:
    store = load_store(args.file)
    password = prompt("Enter a password: ")
    if not store.verify_login(args.username, password):
        raise WsfnError(f"failed to authenticate {args.username}")
    print("OK")
    return 0


def cmd_routes_list(args, prompt: PasswordPrompt) -> int:
    store = load_store(args.file)
    for route in store.routes:
        print(route)
    return 0


def cmd_routes_update(args, prompt: PasswordPrompt) -> int:
    store = load_store(args.file)
    for prefix in args.prefixes:
        store.add_route(prefix)
    store.save()
    return 0


def cmd_routes_remove(args, prompt: PasswordPrompt) -> int:
    store = load_store(args.file)
    for prefix in args.prefixes:
        if not store.remove_route(prefix):
            raise NotFoundError(f"could not find route {prefix!r}")
    store.save()
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="webaccess",
        description="Manage user access and protected routes for wsfn web services.",
        epilog=__doc__.split("Examples:", 1)[1] if __doc__ else None,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--quiet", action="store_true", help="suppress error messages")
    parser.add_argument("--log-level", default="WARNING", help="logging level (default WARNING)")
    sub = parser.add_subparsers(dest="verb", metavar="VERB")
    sub.required = True

    p = sub.add_parser("init", help="create an empty access file")
    p.add_argument("file", nargs="?", default="access.toml")
    p.add_argument("--realm", default="", help="realm shown in the login prompt")
    p.set_defaults(func=cmd_init)

    p = sub.add_parser("update", help="add a user or change a password (prompts)")
    p.add_argument("file")
    p.add_argument("username")
    p.add_argument("--confirm", action="store_true", help="ask for the password twice")
    p.set_defaults(func=cmd_update)

    p = sub.add_parser("remove", help="remove a user")
    p.add_argument("file")
    p.add_argument("username")
    p.set_defaults(func=cmd_remove)

    p = sub.add_parser("list", help="list users")
    p.add_argument("file")
    p.set_defaults(func=cmd_list)

    p = sub.add_parser("test", help="test a login (prompts)")
    p.add_argument("file")
    p.add_argument("username")
    p.set_defaults(func=cmd_test)

    routes = sub.add_parser("routes", help="manage protected routes")
    rsub = routes.add_subparsers(dest="action", metavar="ACTION")
    rsub.required = True

    r = rsub.add_parser("list", help="list protected routes")
    r.add_argument("file")
    r.set_defaults(func=cmd_routes_list)

    r = rsub.add_parser("update", help="add protected routes")
    r.add_argument("file")
    r.add_argument("prefixes", nargs="+")
    r.set_defaults(func=cmd_routes_update)

    r = rsub.add_parser("remove", help="remove protected routes")
    r.add_argument("file")
    r.add_argument("prefixes", nargs="+")
    r.set_defaults(func=cmd_routes_remove)

    return parser


def main(argv: Optional[List[str]] = None, prompt: PasswordPrompt = getpass) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)
    try:
        return args.func(args, prompt)
    except (WsfnError, OSError, ValueError) as err:
        if not args.quiet:
            print(f"{parser.prog} {args.verb} failed, {err}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
