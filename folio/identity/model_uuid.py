"""
ModelUuid — identifiers stored inside the model's content record.

Used for pages and files. Constructing one guarantees the id exists: a
model without an id gets one generated and written before the constructor
returns.
"""

import logging

from folio.identity import storage
from folio.identity.base import Uuid, generate

logger = logging.getLogger(__name__)


class ModelUuid(Uuid):

    retrieve_id = staticmethod(storage.retrieve_id)
    store_id = staticmethod(storage.store_id)

    def __init__(self, app, uuid=None, model=None, context=None):
        super().__init__(app, uuid=uuid, model=model, context=context)
        self.id()

    def id(self) -> str:
        """The id; generated (or taken from the given string) and written on first use."""
        if self.uri.host:
            return self.uri.host

        new_id = self._seed or generate(self.app)
        self._model = storage.store_id(self._model, new_id)

        # another writer may have stored an id first; theirs is the real one
        self.uri.host = storage.retrieve_id(self._model) or new_id
        logger.info("assigned %s to %r", self.uri, self._model)
        return self.uri.host

    def url(self) -> str:
        """
        Permalink `<base>/@/<scheme>/<id>`.

        The permalink route only reads the cache, so the id is cached first.
        """
        if not self.is_cached() and not self.populate():
            raise LookupError(f"{self} does not resolve to any model")

        return f"{self.app.url()}/@/{self.scheme.name}/{self.id()}"
