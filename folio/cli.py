#!/usr/bin/env python3
"""
Folio CLI

Usage:
    folio id <target>                  # get or create id for page/file
    folio id --user <user>             # user ids are the account name
    folio resolve <uuid> [--lazy]      # find the model for an id
    folio url <target|uuid>            # permalink (caches the id)
    folio generate [--scheme S]        # give every page/file an id
    folio populate [--scheme S]        # cache every id
    folio clear [--scheme S]           # empty the id cache
    folio list [--scheme S]            # table of models and ids
    folio serve [--port N]             # permalink redirect server

<target> is a page id (`blog/hello`) or file id (`blog/hello/photo.jpg`).
Global options: --root (FOLIO_ROOT), --url (FOLIO_URL), --lang (repeatable).
"""

import argparse
import sys

from folio.core import FOLIO_ROOT, FOLIO_URL, App
from folio.identity import is_uuid, uuid_for, uuids
from folio.identity.base import UuidsDisabled


def _app(args) -> App:
    return App.load(args.root, url=args.url, languages=args.lang or None)


def _fail(message: str):
    print(message, file=sys.stderr)
    sys.exit(1)


def _target(app, args):
    """Model named by a CLI target, or exit."""
    if getattr(args, "user", False):
        model = app.user(args.target)
    else:
        model = app.page(args.target) or app.file(args.target)
    if model is None:
        _fail(f"Not found: {args.target}")
    return model


def cmd_id(args):
    app = _app(args)
    model = _target(app, args)
    print(uuid_for(app, model))


def cmd_resolve(args):
    app = _app(args)
    uuid = uuid_for(app, args.uuid)
    if uuid is None:
        _fail(f"Not an identifier: {args.uuid}")

    model = uuid.model(lazy=args.lazy)
    if model is None:
        _fail(f"No model for {args.uuid}")

    print(f"{model.TYPE}  {model.id or '(site)'}")


def cmd_url(args):
    app = _app(args)
    if is_uuid(args.target):
        uuid = uuid_for(app, args.target)
    else:
        uuid = uuid_for(app, _target(app, args))

    if not uuid.scheme.permalink:
        _fail(f"{uuid} has no permalink")
    try:
        print(uuid.url())
    except LookupError as e:
        _fail(str(e))


def cmd_generate(args):
    from rich.console import Console

    app = _app(args)
    count = uuids.generate(app, args.scheme)
    Console().print(f"  [dim]generate[/dim]  [green]{count}[/green] new id(s)")


def cmd_populate(args):
    from rich.console import Console

    app = _app(args)
    count = uuids.populate(app, args.scheme, force=args.force)
    Console().print(f"  [dim]populate[/dim]  [green]{count}[/green] cached")


def cmd_clear(args):
    from rich.console import Console

    app = _app(args)
    count = uuids.clear(app, args.scheme)
    Console().print(f"  [dim]clear[/dim]     [yellow]{count}[/yellow] removed")


def cmd_list(args):
    from rich.console import Console
    from rich.table import Table
    from folio.identity import SCHEMES

    app = _app(args)
    table = Table(show_header=True, header_style="bold")
    table.add_column("scheme")
    table.add_column("id")
    table.add_column("uuid")
    table.add_column("cached", justify="center")

    rows = []
    uuids.each(app, rows.append, args.scheme)
    for model in rows:
        scheme = SCHEMES[model.TYPE]
        host = scheme.retrieve_id(model)
        if not host:
            table.add_row(model.TYPE, model.id, "[dim]-[/dim]", "")
            continue
        uuid = uuid_for(app, model)
        cached = "[green]yes[/green]" if uuid.is_cached() else "[dim]no[/dim]"
        table.add_row(model.TYPE, model.id, str(uuid), cached)

    console = Console()
    if not rows:
        console.print("No content")
        return
    console.print(table)
    console.print(f"\n{len(rows)} model(s)")


def cmd_serve(args):
    from folio.permalink import run_http_server

    run_http_server(_app(args), host=args.host, port=args.port)


def main(argv=None):
    parser = argparse.ArgumentParser(
        prog="folio",
        description="Stable identifiers and permalinks for flat-file content.",
    )
    parser.add_argument("--root", default=str(FOLIO_ROOT), help="Site root (default: $FOLIO_ROOT or cwd)")
    parser.add_argument("--url", default=FOLIO_URL, help="Base URL (default: $FOLIO_URL)")
    parser.add_argument("--lang", action="append", default=[], help="Language code (repeatable, first is default)")
    subs = parser.add_subparsers(dest="cmd", required=True)

    # id
    p = subs.add_parser("id", help="Get or create the id of a page or file")
    p.add_argument("target")
    p.add_argument("--user", action="store_true", help="Target is a user account")
    p.set_defaults(func=cmd_id)

    # resolve
    p = subs.add_parser("resolve", help="Find the model for an id")
    p.add_argument("uuid")
    p.add_argument("--lazy", action="store_true", help="Cache only, no index scan")
    p.set_defaults(func=cmd_resolve)

    # url
    p = subs.add_parser("url", help="Permalink for a page, file or id")
    p.add_argument("target")
    p.set_defaults(func=cmd_url)

    scheme_choices = ["all", "page", "file", "user"]

    # generate
    p = subs.add_parser("generate", help="Give every page and file an id")
    p.add_argument("--scheme", choices=scheme_choices, default="all")
    p.set_defaults(func=cmd_generate)

    # populate
    p = subs.add_parser("populate", help="Cache every id")
    p.add_argument("--scheme", choices=scheme_choices, default="all")
    p.add_argument("--force", action="store_true", help="Rewrite entries already cached")
    p.set_defaults(func=cmd_populate)

    # clear
    p = subs.add_parser("clear", help="Empty the id cache")
    p.add_argument("--scheme", choices=scheme_choices, default="all")
    p.set_defaults(func=cmd_clear)

    # list
    p = subs.add_parser("list", help="List models and their ids")
    p.add_argument("--scheme", choices=scheme_choices, default="all")
    p.set_defaults(func=cmd_list)

    # serve
    p = subs.add_parser("serve", help="Serve /@/<scheme>/<id> redirects")
    p.add_argument("--host", default="127.0.0.1")
    p.add_argument("--port", type=int, default=8080)
    p.set_defaults(func=cmd_serve)

    args = parser.parse_args(argv)
    try:
        args.func(args)
    except UuidsDisabled as e:
        _fail(str(e))


if __name__ == "__main__":
    main()
