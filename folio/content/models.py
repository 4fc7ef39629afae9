"""
Content models — Site, Page, File, User.

Every model with content satisfies the Identifiable contract used by the
identity layer: content(), read_content(), write_content(), translation(),
plus a back-reference to its App.

On-disk layout under the app root:

    content/site.txt
    content/1_blog/blog.txt                 page "blog" (template "blog")
    content/1_blog/hello/article.txt        page "blog/hello"
    content/1_blog/hello/photo.jpg          file "blog/hello/photo.jpg"
    content/1_blog/hello/photo.jpg.txt      its metadata record
    site/accounts/alice/user.txt            user "alice"

In multi-language setups each record has one file per language code:
`article.en.txt`, `article.de.txt`.
"""

import re
from pathlib import Path
from typing import Optional, Protocol, runtime_checkable

from folio.content import store

_NUM_PREFIX = re.compile(r"^(\d+)_(.+)$")


@runtime_checkable
class Identifiable(Protocol):
    """Anything the identity layer can assign an identifier to."""

    app: "App"  # noqa: F821

    @property
    def id(self) -> str: ...

    def content(self, lang: Optional[str] = "default") -> "ContentRecord": ...

    def read_content(self, lang: Optional[str] = "default") -> dict: ...

    def write_content(self, data: dict, lang: Optional[str] = "default") -> bool: ...

    def translation(self, lang: Optional[str] = "default") -> "ContentTranslation": ...


class ContentRecord:
    """In-memory content of one model in one language."""

    def __init__(self, data: dict | None = None):
        self._data = dict(data or {})

    def get(self, key: str, default=None) -> Optional[str]:
        value = self._data.get(store.normalize_key(key))
        if value is None or value == "":
            return default
        return value

    def update(self, data: dict | None = None, overwrite: bool = False) -> "ContentRecord":
        """Merge (or with overwrite=True, replace) fields."""
        data = {store.normalize_key(k): v for k, v in (data or {}).items()}
        if overwrite:
            self._data = data
        else:
            self._data.update(data)
        return self

    def to_dict(self) -> dict:
        return dict(self._data)

    def keys(self):
        return self._data.keys()

    def __contains__(self, key) -> bool:
        return store.normalize_key(key) in self._data

    def __repr__(self) -> str:
        return f"ContentRecord({self._data!r})"


class ContentTranslation:
    """Content of a model for one language code."""

    def __init__(self, model: "ModelWithContent", code: Optional[str]):
        self.model = model
        self.code = code
        self._content: Optional[dict] = None

    def content(self) -> dict:
        if self._content is None:
            self._content = self.model.read_content(self.code)
        return dict(self._content)

    def update(self, data: dict | None = None, overwrite: bool = False) -> "ContentTranslation":
        current = {} if overwrite else self.content()
        current.update({store.normalize_key(k): v for k, v in (data or {}).items()})
        self._content = current
        return self

    def exists(self) -> bool:
        return self.model.content_file(self.code).exists()


class ModelWithContent:
    """Base for models backed by a content record."""

    TYPE = "model"

    def __init__(self, app: "App"):  # noqa: F821
        self.app = app
        self._content: dict[Optional[str], ContentRecord] = {}
        self._translations: dict[Optional[str], ContentTranslation] = {}

    @property
    def id(self) -> str:
        raise NotImplementedError

    def content_file(self, code: Optional[str]) -> Path:
        raise NotImplementedError

    def _code(self, lang: Optional[str]) -> Optional[str]:
        return self.app.language_code(lang)

    def content(self, lang: Optional[str] = "default") -> ContentRecord:
        """Cached content record, read from disk on first access."""
        code = self._code(lang)
        if code not in self._content:
            self._content[code] = ContentRecord(self.read_content(code))
        return self._content[code]

    def read_content(self, lang: Optional[str] = "default") -> dict:
        """Fresh read of the record from disk, bypassing the in-memory copy."""
        return store.read(self.content_file(self._code(lang)))

    def write_content(self, data: dict, lang: Optional[str] = "default") -> bool:
        """Write the record to disk. Needs update permission."""
        self.app.auth.check("update", self)
        return store.write(self.content_file(self._code(lang)), data)

    def locked(self, lang: Optional[str] = "default"):
        """Exclusive lock on the record, for read-modify-write sequences."""
        return store.locked(self.content_file(self._code(lang)), exclusive=True)

    def translation(self, lang: Optional[str] = "default") -> ContentTranslation:
        code = self._code(lang)
        if code not in self._translations:
            self._translations[code] = ContentTranslation(self, code)
        return self._translations[code]

    def uuid(self, context=None):
        """Identifier object for this model."""
        from folio.identity import uuid_for
        return uuid_for(self.app, self, context=context)

    def permalink(self) -> str:
        from folio.permalink import permalink
        return permalink(self.app, self)

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.id!r}>"


class _HasChildren:
    """Directory-backed container of pages and files."""

    root: Path

    def _entries(self) -> list[Path]:
        if not self.root.is_dir():
            return []
        return sorted(p for p in self.root.iterdir() if not p.name.startswith("."))

    def children(self) -> list["Page"]:
        result = []
        for p in self._entries():
            if not p.is_dir():
                continue
            page = self.app._recall("page", Page.id_for(self, p))
            if page is None:
                page = self.app._remember(Page(self.app, p, parent=self))
            result.append(page)
        return result

    def child(self, slug: str) -> Optional["Page"]:
        for page in self.children():
            if page.slug == slug:
                return page
        return None

    def files(self) -> list["File"]:
        result = []
        for p in self._entries():
            if not p.is_file() or p.suffix == ".txt":
                continue
            file_id = File.id_for(self, p.name)
            file = self.app._recall("file", file_id)
            if file is None:
                file = self.app._remember(File(self.app, self, p.name))
            result.append(file)
        return result

    def file(self, filename: str) -> Optional["File"]:
        for f in self.files():
            if f.filename == filename:
                return f
        return None


class Site(_HasChildren, ModelWithContent):
    TYPE = "site"

    def __init__(self, app):
        super().__init__(app)
        self.root = app.content_root

    @property
    def id(self) -> str:
        return ""

    def content_file(self, code: Optional[str]) -> Path:
        name = "site.txt" if code is None else f"site.{code}.txt"
        return self.root / name

    def url(self) -> str:
        return self.app.url()

    def __repr__(self) -> str:
        return "<Site>"


class Page(_HasChildren, ModelWithContent):
    TYPE = "page"

    def __init__(self, app, root: Path, parent=None):
        super().__init__(app)
        self.root = Path(root)
        self.parent = parent
        match = _NUM_PREFIX.match(self.root.name)
        self.num = int(match.group(1)) if match else None
        self.slug = match.group(2) if match else self.root.name

    @staticmethod
    def id_for(parent, root: Path) -> str:
        match = _NUM_PREFIX.match(root.name)
        slug = match.group(2) if match else root.name
        return f"{parent.id}/{slug}" if parent.id else slug

    @property
    def id(self) -> str:
        return self.id_for(self.parent, self.root)

    @property
    def template(self) -> str:
        """Name of the record file, minus language code and extension."""
        for p in self._entries():
            if p.is_file() and p.suffix == ".txt" and not self._is_file_meta(p):
                return p.name.split(".")[0]
        return "default"

    def _is_file_meta(self, path: Path) -> bool:
        # photo.jpg.txt / photo.jpg.en.txt belong to files, not the page
        stem = path.name[: -len(".txt")]
        candidates = [stem]
        if "." in stem:
            candidates.append(stem.rsplit(".", 1)[0])
        return any(
            (self.root / c).is_file() and not c.endswith(".txt") for c in candidates
        )

    def content_file(self, code: Optional[str]) -> Path:
        name = self.template
        return self.root / (f"{name}.txt" if code is None else f"{name}.{code}.txt")

    def is_listed(self) -> bool:
        return self.num is not None

    def parents(self) -> list["Page"]:
        result, parent = [], self.parent
        while isinstance(parent, Page):
            result.append(parent)
            parent = parent.parent
        return result

    def url(self) -> str:
        return f"{self.app.url()}/{self.id}"


class File(ModelWithContent):
    TYPE = "file"

    def __init__(self, app, parent, filename: str):
        super().__init__(app)
        self.parent = parent
        self.filename = filename

    @staticmethod
    def id_for(parent, filename: str) -> str:
        return f"{parent.id}/{filename}" if parent.id else filename

    @property
    def id(self) -> str:
        return self.id_for(self.parent, self.filename)

    @property
    def root(self) -> Path:
        return self.parent.root / self.filename

    def content_file(self, code: Optional[str]) -> Path:
        name = self.filename if code is None else f"{self.filename}.{code}"
        return self.parent.root / f"{name}.txt"

    def url(self) -> str:
        return f"{self.parent.url()}/{self.filename}"


class User(ModelWithContent):
    TYPE = "user"

    def __init__(self, app, root: Path):
        super().__init__(app)
        self.root = Path(root)

    @property
    def id(self) -> str:
        return self.root.name

    @property
    def role(self) -> str:
        return self.content("default").get("role", "nobody")

    @property
    def email(self) -> Optional[str]:
        return self.content("default").get("email")

    def content_file(self, code: Optional[str]) -> Path:
        # account records are not translated
        return self.root / "user.txt"

    def _code(self, lang: Optional[str]) -> Optional[str]:
        return None
