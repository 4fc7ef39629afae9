"""
Bulk identifier operations over the whole site.

    generate(app)   give every page and file an id (writes content)
    populate(app)   put every identified model into the cache
    clear(app)      empty the cache
"""

import logging
from typing import Callable

from folio.identity.base import UuidsDisabled, enabled, uuid_for
from folio.identity.schemes import SCHEMES

logger = logging.getLogger(__name__)

ALL = "all"


def _schemes(scheme: str) -> list[str]:
    if scheme == ALL:
        return ["page", "file", "user"]
    if scheme not in SCHEMES or scheme == "site":
        raise ValueError(f"Unknown scheme: {scheme}")
    return [scheme]


def each(app, callback: Callable, scheme: str = ALL) -> int:
    """Call callback(model) for every model of the scheme(s). Returns count."""
    count = 0
    index = app.index()
    for name in _schemes(scheme):
        for model in index.models(name):
            callback(model)
            count += 1
    return count


def generate(app, scheme: str = ALL) -> int:
    """Make sure every stored-id model has an id. Returns how many were new."""
    if not enabled(app):
        raise UuidsDisabled("Identifiers are disabled by the `content.uuid` option")

    created = 0

    def ensure(model):
        nonlocal created
        scheme_ = SCHEMES[model.TYPE]
        if scheme_.stored and not scheme_.retrieve_id(model):
            uuid_for(app, model)
            created += 1

    each(app, ensure, scheme)
    app.uuid_cache().log("generate", scheme, rows_affected=created)
    logger.info("generated %d ids (%s)", created, scheme)
    return created


def populate(app, scheme: str = ALL, force: bool = False) -> int:
    """Cache every model that has an id. Returns how many were cached."""
    if not enabled(app):
        raise UuidsDisabled("Identifiers are disabled by the `content.uuid` option")

    cached = 0

    def cache(model):
        nonlocal cached
        scheme_ = SCHEMES[model.TYPE]
        if not scheme_.retrieve_id(model):
            return
        uuid = uuid_for(app, model)
        if uuid.populate(force=force):
            cached += 1

    each(app, cache, scheme)
    app.uuid_cache().log("populate", scheme, rows_affected=cached, force=force)
    logger.info("populated %d cache entries (%s)", cached, scheme)
    return cached


def clear(app, scheme: str = ALL) -> int:
    """Drop cache entries. Returns how many were removed."""
    cache = app.uuid_cache()
    removed = cache.flush(None if scheme == ALL else _schemes(scheme)[0])
    cache.log("clear", scheme, rows_affected=removed)
    return removed
