"""
Scheme handlers — what differs between page, file, user and site ids.

Each handler answers four questions for its model kind:
- where does the id come from (stored in content, or derived)?
- which models make up the global index?
- what locator goes into the cache?
- how is a model rebuilt from that locator?
"""

from typing import Iterator, Optional

from folio.identity import storage


class Scheme:
    name = ""
    stored = False       # id persisted in the content record
    cacheable = True
    permalink = False    # reachable through /@/<scheme>/<id>

    def owns(self, model) -> bool:
        return getattr(model, "TYPE", None) == self.name

    def retrieve_id(self, model) -> Optional[str]:
        raise NotImplementedError

    def index(self, app) -> Iterator:
        return app.index().models(self.name)

    def value(self, model):
        return model.id

    def restore(self, app, value):
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<Scheme {self.name}>"


class PageScheme(Scheme):
    name = "page"
    stored = True
    permalink = True

    def retrieve_id(self, model) -> Optional[str]:
        return storage.retrieve_id(model)

    def restore(self, app, value):
        return app.page(value)


class FileScheme(Scheme):
    name = "file"
    stored = True
    permalink = True

    def retrieve_id(self, model) -> Optional[str]:
        return storage.retrieve_id(model)

    def value(self, model):
        return {"parent": model.parent.id, "filename": model.filename}

    def restore(self, app, value):
        parent_id = value.get("parent") or ""
        parent = app.page(parent_id) if parent_id else app.site()
        if parent is None:
            return None
        return parent.file(value.get("filename", ""))


class UserScheme(Scheme):
    """User ids are the account directory name."""

    name = "user"

    def retrieve_id(self, model) -> Optional[str]:
        return model.id

    def restore(self, app, value):
        return app.user(value)


class SiteScheme(Scheme):
    """There is one site; `site://` always resolves to it."""

    name = "site"
    cacheable = False

    def retrieve_id(self, model) -> Optional[str]:
        return ""

    def restore(self, app, value):
        return app.site()


SCHEMES: dict[str, Scheme] = {
    s.name: s for s in (PageScheme(), FileScheme(), UserScheme(), SiteScheme())
}


def scheme_for(model) -> Optional[Scheme]:
    return SCHEMES.get(getattr(model, "TYPE", None))
