"""
Uuid — a stable identifier for a content model.

Resolution order:
1. cache          (key → locator → model, no scanning)
2. local index    (the `context` collection, if given)
3. global index   (every model of the scheme, in tree order)

A hit from 2 or 3 is written to the cache. A miss returns None.

Usage:
    uuid = uuid_for(app, "page://x3kq9v0c2mfe1ab7")
    page = uuid.model()              # resolve, may scan
    page = uuid.model(lazy=True)     # cache only
"""

import logging
import secrets
import string
import uuid as uuid_lib
from typing import Callable, Iterable, Iterator, Optional

from folio.identity.schemes import SCHEMES, scheme_for
from folio.identity.uri import InvalidFormat, Uri

logger = logging.getLogger(__name__)

ID_ALPHABET = string.ascii_lowercase + string.digits
ID_LENGTH = 16


class UuidsDisabled(RuntimeError):
    pass


def enabled(app) -> bool:
    """Identifiers are on unless the `content.uuid` option is False."""
    return app.option("content.uuid", True) is not False


class Uuid:
    """Identifier whose id is derived from the model (users, the site)."""

    # Optional override: generator(length) -> str
    generator: Optional[Callable[[int], str]] = None

    def __init__(self, app, uuid: Optional[str] = None, model=None,
                 context: Optional[Iterable] = None):
        if not enabled(app):
            raise UuidsDisabled("Identifiers are disabled by the `content.uuid` option")

        self.app = app
        self.context = context
        self._model = model
        # id to persist instead of a generated one (model without an id yet)
        self._seed: Optional[str] = None

        if model is not None:
            self.scheme = scheme_for(model)
            if self.scheme is None:
                raise TypeError(f"{model!r} cannot have an identifier")
            self.uri = Uri(self.scheme.name, self.scheme.retrieve_id(model))
            if uuid is not None:
                given = Uri.parse(uuid)
                if given.scheme != self.uri.scheme or (self.uri.host and given.host != self.uri.host):
                    raise ValueError(f"{uuid} does not match {model!r} ({self.uri})")
                self.uri.fragment = given.fragment
                if not self.uri.host:
                    self._seed = given.host
        elif uuid is not None:
            self.uri = Uri.parse(uuid)
            self.scheme = SCHEMES[self.uri.scheme]
        else:
            raise ValueError("An identifier needs a uuid string or a model")

    # ─────────────────────────────────────────────────────────────────────────
    # Identity
    # ─────────────────────────────────────────────────────────────────────────

    def id(self) -> str:
        return self.uri.host

    def key(self) -> str:
        """Cache key; the 2-char prefix keeps file-backed caches shallow."""
        id = self.id()
        return f"{self.scheme.name}/{id[:2]}/{id[2:]}"

    def value(self):
        """Cache locator for the resolved model."""
        model = self.model()
        if model is None:
            raise LookupError(f"{self} does not resolve to any model")
        return self.scheme.value(model)

    def __str__(self) -> str:
        return str(self.uri)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self}>"

    # ─────────────────────────────────────────────────────────────────────────
    # Resolution
    # ─────────────────────────────────────────────────────────────────────────

    def indexes(self) -> Iterator:
        """Local index first, then global."""
        if self.context is not None:
            yield from self.context
        yield from self.scheme.index(self.app)

    def find_by_cache(self):
        if not self.scheme.cacheable:
            return self.scheme.restore(self.app, None)

        cache = self.app.uuid_cache()
        value = cache.get(self.key())
        if value is None:
            return None

        model = self.scheme.restore(self.app, value)
        if model is None or self.scheme.retrieve_id(model) != self.id():
            # moved, deleted or re-identified since it was cached
            logger.debug("dropping stale cache entry %s", self.key())
            cache.remove(self.key())
            return None
        return model

    def _matches(self, model) -> bool:
        return self.scheme.owns(model) and self.scheme.retrieve_id(model) == self.id()

    def find_by_index(self):
        for model in self.indexes():
            if self._matches(model):
                return model

        # the index may predate content added since; rebuild and rescan once
        self.app.index().invalidate()
        for model in self.scheme.index(self.app):
            if self._matches(model):
                return model
        return None

    def model(self, lazy: bool = False):
        """The identified model, or None. lazy=True consults the cache only."""
        if self._model is not None:
            return self._model

        self._model = self.find_by_cache()
        if self._model is None and not lazy:
            self._model = self.find_by_index()
            if self._model is not None:
                self.populate()

        return self._model

    def resolve(self):
        return self.model()

    # ─────────────────────────────────────────────────────────────────────────
    # Cache
    # ─────────────────────────────────────────────────────────────────────────

    def is_cached(self) -> bool:
        if not self.scheme.cacheable:
            return True
        return self.app.uuid_cache().exists(self.key())

    def populate(self, force: bool = False) -> bool:
        """Write this identifier to the cache. False if it resolves to nothing."""
        if not self.scheme.cacheable:
            return True
        if not force and self.is_cached():
            return True

        model = self.model()
        if model is None:
            return False
        return self.app.uuid_cache().set(self.key(), self.scheme.value(model))

    def clear(self, recursive: bool = False) -> bool:
        """Remove from the cache; recursive also clears child pages and files."""
        if recursive:
            model = self.model()
            for child in _descendants(model):
                scheme = scheme_for(child)
                if scheme is None or not scheme.retrieve_id(child):
                    continue  # never had an id, so never cached
                uuid_for(self.app, child).clear(recursive=True)

        if not self.scheme.cacheable:
            return True
        return self.app.uuid_cache().remove(self.key())


def _descendants(model) -> list:
    if model is None or not hasattr(model, "children"):
        return []
    return list(model.files()) + list(model.children())


def generate(app, length: int = ID_LENGTH) -> str:
    """New random id: lowercase alphanumeric, or uuid-v4 if configured."""
    if Uuid.generator is not None:
        return Uuid.generator(length)
    if app.option("content.uuid") == "uuid-v4":
        return str(uuid_lib.uuid4())
    return "".join(secrets.choice(ID_ALPHABET) for _ in range(length))


def uuid_for(app, seed, context: Optional[Iterable] = None) -> Optional[Uuid]:
    """Identifier object for a uuid string or a model; None if neither fits."""
    from folio.identity.model_uuid import ModelUuid

    if isinstance(seed, str):
        try:
            uri = Uri.parse(seed)
        except InvalidFormat:
            return None
        cls = ModelUuid if SCHEMES[uri.scheme].stored else Uuid
        return cls(app, uuid=seed, context=context)

    scheme = scheme_for(seed)
    if scheme is None:
        return None
    cls = ModelUuid if scheme.stored else Uuid
    return cls(app, model=seed, context=context)
