"""
Folio Core — the application context.

Infrastructure plumbing. Every other module receives an App explicitly;
there is no process-wide instance.

An App holds:
- where content lives (content/, site/accounts/, site/cache/)
- the base URL and configured languages
- options (content.uuid, permissions, ...)
- auth state and scoped impersonation
- an identity map, so the same page id always yields the same object
- the memoized content index and identifier cache
"""

import contextlib
import json
import os
from pathlib import Path
from typing import Optional

from folio.auth import Auth, SYSTEM  # noqa: F401
from folio.content.models import Page, Site, User

# CLI defaults (override with env vars)
FOLIO_ROOT = Path(os.environ.get("FOLIO_ROOT", Path.cwd()))
FOLIO_URL = os.environ.get("FOLIO_URL", "")

CONFIG_FILE = Path("site") / "config" / "config.json"
CACHE_FILE = Path("site") / "cache" / "uuid.db"


class App:
    def __init__(
        self,
        root: str | Path,
        url: str = "",
        languages: Optional[list[str]] = None,
        options: Optional[dict] = None,
        cache_path: str | Path | None = None,
    ):
        self.root = Path(root).resolve()
        self.content_root = self.root / "content"
        self.accounts_root = self.root / "site" / "accounts"
        self.languages = list(languages or [])
        self.options = dict(options or {})
        self._url = url.rstrip("/")
        self._cache_path = cache_path
        self.auth = Auth(self, self.options.get("permissions"))

        self._site: Optional[Site] = None
        self._models: dict[tuple[str, str], object] = {}
        self._index = None
        self._cache = None

    @classmethod
    def load(cls, root: str | Path, **overrides) -> "App":
        """Build an App from <root>/site/config/config.json plus overrides."""
        root = Path(root)
        config = {}
        config_path = root / CONFIG_FILE
        if config_path.exists():
            config = json.loads(config_path.read_text())

        url = overrides.pop("url", None) or config.pop("url", "")
        languages = overrides.pop("languages", None) or config.pop("languages", None)
        config.update(overrides.pop("options", None) or {})
        return cls(root, url=url, languages=languages, options=config, **overrides)

    # ─────────────────────────────────────────────────────────────────────────
    # Config
    # ─────────────────────────────────────────────────────────────────────────

    def option(self, key: str, default=None):
        return self.options.get(key, default)

    def url(self) -> str:
        return self._url

    def multilang(self) -> bool:
        return len(self.languages) > 0

    def default_language(self) -> Optional[str]:
        return self.languages[0] if self.languages else None

    def language_code(self, lang: Optional[str]) -> Optional[str]:
        """Map "default"/None to the default language code (None if monolingual)."""
        if not self.multilang():
            return None
        if lang is None or lang == "default":
            return self.default_language()
        if lang not in self.languages:
            raise ValueError(f"Unknown language: {lang}")
        return lang

    # ─────────────────────────────────────────────────────────────────────────
    # Auth
    # ─────────────────────────────────────────────────────────────────────────

    def impersonate(self, who=None, callback=None):
        """Impersonate `who`. With a callback, run it and restore afterwards."""
        if callback is None:
            return self.auth.impersonate(who)
        with self.impersonating(who):
            return callback()

    @contextlib.contextmanager
    def impersonating(self, who=SYSTEM):
        """Scoped impersonation; the previous principal is restored on exit."""
        previous = self.auth.current_user_from_impersonation()
        self.auth.impersonate(who)
        try:
            yield self.auth.user()
        finally:
            self.auth.impersonate(previous)

    # ─────────────────────────────────────────────────────────────────────────
    # Models
    # ─────────────────────────────────────────────────────────────────────────

    def _recall(self, scheme: str, model_id: str):
        return self._models.get((scheme, model_id))

    def _remember(self, model):
        return self._models.setdefault((model.TYPE, model.id), model)

    def site(self) -> Site:
        if self._site is None:
            self._site = Site(self)
        return self._site

    def page(self, page_id: str) -> Optional[Page]:
        """Find a page by id, walking only the directories on its path."""
        page_id = page_id.strip("/")
        if not page_id:
            return None

        cached = self._recall("page", page_id)
        if cached is not None:
            return cached

        parent = self.site()
        for slug in page_id.split("/"):
            parent = parent.child(slug)
            if parent is None:
                return None
        return parent

    def file(self, file_id: str):
        """Find a file by `<page id>/<filename>` (or bare filename for site files)."""
        parent_id, _, filename = file_id.strip("/").rpartition("/")
        parent = self.page(parent_id) if parent_id else self.site()
        return parent.file(filename) if parent else None

    def users(self) -> list[User]:
        if not self.accounts_root.is_dir():
            return []
        result = []
        for p in sorted(self.accounts_root.iterdir()):
            if not p.is_dir() or p.name.startswith("."):
                continue
            user = self._recall("user", p.name)
            result.append(user if user is not None else self._remember(User(self, p)))
        return result

    def user(self, user_id: str) -> Optional[User]:
        cached = self._recall("user", user_id)
        if cached is not None:
            return cached
        path = self.accounts_root / user_id
        if not path.is_dir():
            return None
        return self._remember(User(self, path))

    # ─────────────────────────────────────────────────────────────────────────
    # Index & cache
    # ─────────────────────────────────────────────────────────────────────────

    def index(self):
        """Memoized content index, built on first use."""
        if self._index is None:
            from folio.identity.index import ContentIndex
            self._index = ContentIndex(self)
        return self._index

    def uuid_cache(self):
        if self._cache is None:
            from folio.identity.cache import UuidCache
            path = self._cache_path or self.root / CACHE_FILE
            self._cache = UuidCache(path)
        return self._cache

    def reset(self) -> None:
        """Forget loaded models and the index (content changed on disk)."""
        self._site = None
        self._models.clear()
        self._index = None

    def close(self) -> None:
        if self._cache is not None:
            self._cache.close()
            self._cache = None
