"""
Folio Identity

Stable identifiers for content models whose paths change.

    page://<id>   id stored in the page's content record
    file://<id>   id stored in the file's metadata record
    user://<id>   the account id
    site://       the site

Modules:
    uri          parse/format identifier strings
    base         Uuid: cache → local index → global index resolution
    model_uuid   ModelUuid: lazy generation, persistence, permalinks
    storage      retrieve_id / store_id on content records
    schemes      per-scheme behavior (page, file, user, site)
    index        networkx content index
    cache        sqlite identifier cache
    uuids        bulk generate / populate / clear
"""

from . import uuids
from .base import Uuid, UuidsDisabled, enabled, generate, uuid_for
from .cache import UuidCache
from .index import ContentIndex
from .model_uuid import ModelUuid
from .schemes import SCHEMES, scheme_for
from .storage import retrieve_id, store_id
from .uri import InvalidFormat, Uri, is_uuid

__all__ = [
    "uuids",
    "Uuid", "ModelUuid", "UuidsDisabled", "enabled", "generate", "uuid_for",
    "UuidCache", "ContentIndex",
    "SCHEMES", "scheme_for",
    "retrieve_id", "store_id",
    "InvalidFormat", "Uri", "is_uuid",
]
