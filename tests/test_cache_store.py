"""Tests for the atomic cache store."""

import logging

import pytest

from addonmgr.core import cache_store
from addonmgr.core.cache_store import MISSING, CacheStore
from addonmgr.exceptions import CacheWriteError


@pytest.fixture
def store(cache_dir):
    store = CacheStore(cache_dir)
    store.ensure_dirs(["theme"])
    return store


def test_write_then_read(store, cache_dir):
    assert store.write("addon", {"foo": {"key": "foo", "priority": 3}})

    assert (cache_dir / "addon.yml").is_file()
    assert store.read("addon") == {"foo": {"key": "foo", "priority": 3}}


def test_nested_names_map_to_subdirectories(store, cache_dir):
    assert store.write("theme/dark", None)

    assert (cache_dir / "theme" / "dark.yml").is_file()
    assert store.read("theme/dark") is None


def test_missing_and_unreadable_documents_are_not_cached(store, cache_dir):
    assert store.read("nothing") is MISSING
    assert store.read("nothing", default={}) == {}

    (cache_dir / "garbage.yml").write_text("{: [unclosed\n", encoding="utf-8")
    assert store.read("garbage") is MISSING

    (cache_dir / "torn.yml").write_bytes(b"\xff\xfe\x00garbage")
    assert store.read("torn") is MISSING


def test_write_leaves_no_temp_files(store, cache_dir):
    for i in range(3):
        store.write("addon", {"generation": i})

    assert store.read("addon") == {"generation": 2}
    assert [p.name for p in cache_dir.iterdir() if p.is_file()] == ["addon.yml"]


def test_published_file_is_world_readable(store, cache_dir):
    store.write("addon", {})

    assert (cache_dir / "addon.yml").stat().st_mode & 0o777 == 0o644


def test_failed_replace_falls_back_to_delete_and_rename(store, cache_dir, monkeypatch):
    store.write("addon", {"generation": 1})

    def refuse(src, dst):
        raise OSError("busy")

    monkeypatch.setattr(cache_store.os, "replace", refuse)

    assert store.write("addon", {"generation": 2})
    assert store.read("addon") == {"generation": 2}


def test_failed_write_is_a_warning(tmp_path, caplog):
    blocker = tmp_path / "blocker"
    blocker.write_text("not a directory", encoding="utf-8")
    store = CacheStore(blocker / "cache")

    with caplog.at_level(logging.WARNING, logger="addonmgr"):
        assert store.write("addon", {"a": 1}) is False

    assert "addon.yml" in caplog.text


def test_disabled_store(tmp_path):
    store = CacheStore(None)

    assert not store.enabled
    assert store.read("addon") is MISSING
    assert store.clear()
    with pytest.raises(CacheWriteError):
        store.path_for("addon")


def test_clear_removes_documents(store, cache_dir):
    store.write("addon", {})
    store.write("theme-index", {"dark": "/themes/dark"})
    store.write("theme/dark", {"key": "dark"})
    (cache_dir / "keep.txt").write_text("x", encoding="utf-8")

    assert store.clear()

    assert not list(cache_dir.rglob("*.yml"))
    assert (cache_dir / "keep.txt").exists()


def test_delete(store, cache_dir):
    store.write("theme/dark", {"key": "dark"})

    assert store.delete("theme/dark")
    assert store.delete("theme/dark")
    assert not (cache_dir / "theme" / "dark.yml").exists()


def test_temp_cleanup_failure_does_not_fail_the_write(store, cache_dir, monkeypatch, caplog):
    def refuse(self, missing_ok=False):
        raise PermissionError("read-only")

    monkeypatch.setattr(cache_store.Path, "unlink", refuse)

    with caplog.at_level(logging.DEBUG, logger="addonmgr"):
        assert store.write("addon", {"a": 1})

    assert store.read("addon") == {"a": 1}
    assert "Could not remove temp file" in caplog.text
