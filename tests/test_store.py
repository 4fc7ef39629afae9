"""Tests for folio.content.store — record format and locked atomic writes."""

import os
import pytest

from folio.content import store


class TestFormat:

    def test_decode_fields(self):
        text = "Title: Hello\n\n----\n\nText:\n\nLine one\nLine two\n\n----\n\nUuid: abc123\n"
        data = store.decode(text)
        assert data == {"title": "Hello", "text": "Line one\nLine two", "uuid": "abc123"}

    def test_keys_normalized(self):
        data = store.decode("Meta Title: x\n----\nsort-key: 2")
        assert data == {"meta_title": "x", "sort_key": "2"}

    def test_value_with_colon(self):
        assert store.decode("Link: https://example.com")["link"] == "https://example.com"

    def test_encode_capitalizes_and_separates(self):
        text = store.encode({"title": "Hello", "uuid": "abc"})
        assert text == "Title: Hello\n\n----\n\nUuid: abc\n"

    def test_encode_multiline_on_next_line(self):
        text = store.encode({"text": "a\nb"})
        assert text.startswith("Text:\n\na\nb")

    def test_encode_drops_none(self):
        assert "Skip" not in store.encode({"title": "x", "skip": None})

    def test_separator_inside_value_survives(self):
        value = "before\n----\nafter"
        text = store.encode({"text": value, "title": "t"})
        assert "\\----" in text
        assert store.decode(text) == {"text": value, "title": "t"}

    def test_crlf_and_bom(self):
        data = store.decode("\ufeffTitle: x\r\n\r\n----\r\n\r\nUuid: y\r\n")
        assert data == {"title": "x", "uuid": "y"}


class TestReadWrite:

    def test_read_missing_is_empty(self, tmp_path):
        assert store.read(tmp_path / "nope.txt") == {}

    def test_write_then_read(self, tmp_path):
        path = tmp_path / "page" / "default.txt"
        assert store.write(path, {"title": "Hi", "uuid": "x1"}) is True
        assert store.read(path) == {"title": "Hi", "uuid": "x1"}

    def test_no_temp_files_left(self, tmp_path):
        path = tmp_path / "default.txt"
        store.write(path, {"title": "Hi"})
        leftovers = [p.name for p in tmp_path.iterdir() if p.name.endswith(".tmp")]
        assert leftovers == []

    def test_failed_replace_keeps_old_record(self, tmp_path, monkeypatch):
        path = tmp_path / "default.txt"
        store.write(path, {"title": "Old"})

        def broken_replace(src, dst):
            raise OSError("disk full")

        monkeypatch.setattr(os, "replace", broken_replace)
        with pytest.raises(OSError):
            store.write(path, {"title": "New"})

        assert store.read(path) == {"title": "Old"}
        assert not [p for p in tmp_path.iterdir() if p.name.endswith(".tmp")]


class TestLocking:

    def test_reentrant_inside_exclusive(self, tmp_path):
        path = tmp_path / "default.txt"
        store.write(path, {"title": "a"})
        with store.locked(path):
            data = store.read(path)
            data["uuid"] = "z"
            store.write(path, data)
        assert store.read(path) == {"title": "a", "uuid": "z"}

    def test_shared_cannot_upgrade(self, tmp_path):
        path = tmp_path / "default.txt"
        with store.locked(path, exclusive=False):
            with pytest.raises(RuntimeError):
                with store.locked(path, exclusive=True):
                    pass

    def test_lock_released(self, tmp_path):
        path = tmp_path / "default.txt"
        with store.locked(path):
            pass
        # a second acquisition would block forever if the first leaked
        with store.locked(path):
            pass

    def test_lock_file_is_hidden(self, tmp_path):
        path = tmp_path / "default.txt"
        store.write(path, {"title": "a"})
        visible = sorted(p.name for p in tmp_path.iterdir() if not p.name.startswith("."))
        assert visible == ["default.txt"]
