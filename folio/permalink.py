"""
Permalinks — `<base>/@/<scheme>/<id>`.

Incoming permalink requests are resolved from the identifier cache only.
ModelUuid.url() caches an id before handing out its permalink, so every
advertised link resolves without scanning the content tree.
"""

import logging
import re
import sys
from typing import Optional

from folio.identity import SCHEMES, enabled, uuid_for

logger = logging.getLogger(__name__)

PERMALINK_PATTERN = re.compile(r"^/?@/(?P<scheme>[a-z]+)/(?P<id>[A-Za-z0-9_-]+)/?$")


def permalink(app, model) -> str:
    """Permalink for a page or file, generating its id if needed."""
    uuid = uuid_for(app, model)
    if uuid is None or not uuid.scheme.permalink:
        raise TypeError(f"{model!r} has no permalink")
    return uuid.url()


def resolve_permalink(app, path: str):
    """Model behind a permalink path, from the cache only. None if unknown."""
    if not enabled(app):
        return None

    match = PERMALINK_PATTERN.match(path)
    if match is None:
        return None

    scheme = SCHEMES.get(match.group("scheme"))
    if scheme is None or not scheme.permalink:
        return None

    uuid = uuid_for(app, f"{scheme.name}://{match.group('id')}")
    if uuid is None:
        return None
    return uuid.model(lazy=True)


def redirect_target(app, path: str, query: str = "") -> Optional[str]:
    """Current URL of the model behind a permalink, keeping the query string."""
    model = resolve_permalink(app, path)
    if model is None:
        return None
    url = model.url()
    return f"{url}?{query}" if query else url


def create_app(app):
    """Starlette app answering /@/<scheme>/<id> with a redirect or a 404."""
    from starlette.applications import Starlette
    from starlette.requests import Request
    from starlette.responses import PlainTextResponse, RedirectResponse, Response
    from starlette.routing import Route

    # sync endpoint; Starlette runs it in its threadpool
    def follow(request: Request) -> Response:
        path = f"@/{request.path_params['scheme']}/{request.path_params['id']}"
        target = redirect_target(app, path, request.url.query)
        if target is None:
            logger.info("permalink miss: %s", path)
            return PlainTextResponse("Not found", status_code=404)
        return RedirectResponse(target, status_code=302)

    return Starlette(
        debug=False,
        routes=[
            Route("/@/{scheme}/{id}", follow, methods=["GET", "HEAD"]),
        ],
    )


def run_http_server(app, host: str = "127.0.0.1", port: int = 8080):
    import uvicorn

    print(f"[folio] permalinks on http://{host}:{port}/@/", file=sys.stderr)
    uvicorn.run(create_app(app), host=host, port=port)
