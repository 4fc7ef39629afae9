"""
Folio Test Fixtures

Builds small flat-file sites under tmp_path. Every app gets an in-memory
identifier cache unless a test asks for a file-backed one.

Run with: pytest tests/ -v
"""
import pytest
from pathlib import Path

from folio.content import store
from folio.core import App


BASE_URL = "https://example.com"

WORLD_ID = "worldid000000001"
ABOUT_ID = "aboutid000000001"


def write_record(path: Path, **fields):
    """Write a content record, creating directories as needed."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(store.encode(fields), encoding="utf-8")
    return path


def build_site(root: Path) -> Path:
    """
    content/
        site.txt
        1_blog/blog.txt
        1_blog/hello/article.txt            no id
        1_blog/hello/photo.jpg (+ .txt)     no id
        1_blog/world/article.txt            WORLD_ID
        about/default.txt                   ABOUT_ID
    site/accounts/alice (admin), bob (editor)
    """
    content = root / "content"
    write_record(content / "site.txt", title="Test site")
    write_record(content / "1_blog" / "blog.txt", title="Blog")
    write_record(
        content / "1_blog" / "hello" / "article.txt",
        title="Hello", text="First line\nSecond line", date="2024-01-01",
    )
    (content / "1_blog" / "hello" / "photo.jpg").write_bytes(b"\xff\xd8\xff")
    write_record(content / "1_blog" / "hello" / "photo.jpg.txt", alt="A photo")
    write_record(content / "1_blog" / "world" / "article.txt", title="World", uuid=WORLD_ID)
    write_record(content / "about" / "default.txt", title="About", uuid=ABOUT_ID)

    accounts = root / "site" / "accounts"
    write_record(accounts / "alice" / "user.txt", email="alice@example.com", role="admin")
    write_record(accounts / "bob" / "user.txt", email="bob@example.com", role="editor")
    return root


@pytest.fixture
def site_root(tmp_path):
    return build_site(tmp_path / "site")


@pytest.fixture
def app(site_root):
    """Monolingual app with an in-memory cache."""
    a = App(site_root, url=BASE_URL, cache_path=":memory:")
    yield a
    a.close()


@pytest.fixture
def multilang_app(tmp_path):
    """Two-language app (en default, de)."""
    root = tmp_path / "ml"
    content = root / "content"
    write_record(content / "site.en.txt", title="Site")
    write_record(content / "notes" / "note.en.txt", title="Notes", text="English")
    write_record(content / "notes" / "note.de.txt", title="Notizen", text="Deutsch")
    a = App(root, url=BASE_URL, languages=["en", "de"], cache_path=":memory:")
    yield a
    a.close()
