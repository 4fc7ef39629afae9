"""Tests for folio.cli — commands run against a site root with a file cache."""

import pytest

from folio import cli
from folio.core import App

from tests.conftest import BASE_URL, WORLD_ID


def run(site_root, *argv):
    cli.main(["--root", str(site_root), "--url", BASE_URL, *argv])


class TestId:

    def test_existing(self, site_root, capsys):
        run(site_root, "id", "blog/world")
        assert capsys.readouterr().out.strip() == f"page://{WORLD_ID}"

    def test_creates(self, site_root, capsys):
        run(site_root, "id", "blog/hello/photo.jpg")
        out = capsys.readouterr().out.strip()
        assert out.startswith("file://")

        app = App(site_root)
        assert app.file("blog/hello/photo.jpg").read_content()["uuid"] == out[len("file://"):]
        app.close()

    def test_user(self, site_root, capsys):
        run(site_root, "id", "--user", "alice")
        assert capsys.readouterr().out.strip() == "user://alice"

    def test_not_found(self, site_root, capsys):
        with pytest.raises(SystemExit) as exc:
            run(site_root, "id", "blog/nope")
        assert exc.value.code == 1
        assert "Not found" in capsys.readouterr().err


class TestResolve:

    def test_resolve(self, site_root, capsys):
        run(site_root, "resolve", f"page://{WORLD_ID}")
        assert capsys.readouterr().out.strip() == "page  blog/world"

    def test_lazy_after_populate(self, site_root, capsys):
        with pytest.raises(SystemExit):
            run(site_root, "resolve", "--lazy", f"page://{WORLD_ID}")
        run(site_root, "populate")
        capsys.readouterr()
        run(site_root, "resolve", "--lazy", f"page://{WORLD_ID}")
        assert capsys.readouterr().out.strip() == "page  blog/world"

    def test_site(self, site_root, capsys):
        run(site_root, "resolve", "site://")
        assert capsys.readouterr().out.strip() == "site  (site)"

    def test_not_an_identifier(self, site_root, capsys):
        with pytest.raises(SystemExit):
            run(site_root, "resolve", "blog/world")
        assert "Not an identifier" in capsys.readouterr().err


class TestUrl:

    def test_page(self, site_root, capsys):
        run(site_root, "url", "blog/world")
        assert capsys.readouterr().out.strip() == f"{BASE_URL}/@/page/{WORLD_ID}"

    def test_by_uuid(self, site_root, capsys):
        run(site_root, "url", f"page://{WORLD_ID}")
        assert capsys.readouterr().out.strip() == f"{BASE_URL}/@/page/{WORLD_ID}"

    def test_user_has_no_permalink(self, site_root, capsys):
        with pytest.raises(SystemExit):
            run(site_root, "url", "user://alice")
        assert "no permalink" in capsys.readouterr().err

    def test_unknown_uuid(self, site_root, capsys):
        with pytest.raises(SystemExit):
            run(site_root, "url", "page://nosuchid00000001")
        assert "does not resolve" in capsys.readouterr().err


class TestBulk:

    def test_generate_populate_clear(self, site_root, capsys):
        run(site_root, "generate")
        assert "3" in capsys.readouterr().out
        run(site_root, "populate")
        assert "7" in capsys.readouterr().out
        run(site_root, "clear", "--scheme", "user")
        assert "2" in capsys.readouterr().out

    def test_list(self, site_root, capsys):
        run(site_root, "list", "--scheme", "page")
        out = capsys.readouterr().out
        assert WORLD_ID in out
        assert "4 model(s)" in out

    def test_disabled(self, site_root, capsys):
        config = site_root / "site" / "config" / "config.json"
        config.parent.mkdir(parents=True)
        config.write_text('{"content.uuid": false}')
        with pytest.raises(SystemExit):
            run(site_root, "generate")
        assert "disabled" in capsys.readouterr().err
