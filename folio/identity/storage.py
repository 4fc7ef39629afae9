"""
Reading and writing the identifier stored inside a model's content record.

The id lives in the `uuid` field of the default-language record. Writing it
is a merge: every other field of the record is preserved.
"""

import logging
import time
from typing import Optional

from folio.auth import SYSTEM

logger = logging.getLogger(__name__)

FIELD = "uuid"

# An empty read is retried once after this delay (seconds)
READ_RETRY_DELAY = 0.001


def retrieve_id(model) -> Optional[str]:
    """The id stored in the model's content record, if any. Read-only."""
    return model.content("default").get(FIELD)


def store_id(model, id: str):
    """
    Persist `id` into the model's content record unless it already has one.

    Runs as the SYSTEM principal because the acting user may not be allowed
    to update the record; the previous impersonation is restored however
    this exits. The read-check-write holds the record's exclusive lock, so
    a concurrent writer in another process either sees our id or we see
    theirs, never both written.

    Returns the model, whose in-memory content now carries the stored id.
    Write errors propagate.
    """
    app = model.app

    with app.impersonating(SYSTEM):
        with model.locked("default"):
            data = model.read_content("default")

            # An empty read may be a record caught mid-replace on storage
            # without atomic rename; it may also be a genuinely new record.
            if not data:
                time.sleep(READ_RETRY_DELAY)
                data = model.read_content("default")

            if not data.get(FIELD):
                data[FIELD] = id
            elif data[FIELD] != id:
                logger.info("%r already has id %s, keeping it", model, data[FIELD])

            # update memory first, then disk; both see the merged record
            model.content("default").update(data)
            model.write_content(data, "default")

        if app.multilang():
            model.translation("default").update(data)

    return model
