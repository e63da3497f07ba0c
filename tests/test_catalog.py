"""Tests for the addon catalog and its two caching strategies."""

import logging

import pytest
import yaml

from addonmgr.core.addon import AddonType
from addonmgr.core.catalog import AddonCatalog
from addonmgr.exceptions import AddonConstructionError, ConfigurationError


def _identity(addons):
    return {key: (a.key, a.version, a.priority) for key, a in addons.items()}


def _refuse(root, subdir):
    raise AssertionError(f"unexpected scan of {subdir}")


class TestScan:
    def test_scan_skips_invalid_directories(self, tree, make_catalog, caplog):
        tree.plugin("good", version="1.0")
        tree.add("nodescriptor", None)
        tree.add("badtype", {"type": "gadget"})
        (tree.root / "plugins" / "README.txt").write_text("not an addon", encoding="utf-8")

        with caplog.at_level(logging.WARNING, logger="addonmgr"):
            addons = make_catalog(cached=False).scan(AddonType.ADDON)

        assert list(addons) == ["good"]
        assert "/plugins/nodescriptor" in caplog.text
        assert "/plugins/badtype" in caplog.text

    def test_scan_survives_broken_translations_and_encoding(self, tree, make_catalog, caplog):
        tree.plugin("good")
        tree.plugin("nulltrans", translations={"en": None})
        tree.plugin("inttrans", translations={"en": 5})
        latin1 = tree.add("latin1", None)
        (latin1 / "addon.yml").write_bytes(b"name: caf\xe9\n")

        with caplog.at_level(logging.WARNING, logger="addonmgr"):
            addons = make_catalog(cached=False).scan(AddonType.ADDON)

        assert list(addons) == ["good"]
        assert "/plugins/nulltrans" in caplog.text
        assert "/plugins/latin1" in caplog.text

    def test_scan_covers_every_root_of_a_type(self, tree, make_catalog):
        tree.plugin("plug")
        tree.add("app", {"type": "application"}, scan_dir="applications")

        addons = make_catalog(cached=False).scan("addon")

        assert sorted(addons) == ["app", "plug"]
        assert addons["app"].subdir == "/applications/app"

    def test_persist_without_cache_dir_is_invalid(self, tree, make_catalog):
        with pytest.raises(ConfigurationError):
            make_catalog(cached=False).scan(AddonType.ADDON, persist=True)

    def test_persist_addons_writes_one_bulk_file(self, tree, make_catalog, cache_dir):
        tree.plugin("one")
        tree.plugin("two")

        make_catalog().scan(AddonType.ADDON, persist=True)

        data = yaml.safe_load((cache_dir / "addon.yml").read_text(encoding="utf-8"))
        assert sorted(data) == ["one", "two"]

    def test_persist_themes_writes_index_and_items(self, tree, make_catalog, cache_dir):
        tree.theme("Dark")
        tree.theme("light")

        make_catalog().scan(AddonType.THEME, persist=True)

        index = yaml.safe_load((cache_dir / "theme-index.yml").read_text(encoding="utf-8"))
        assert index == {"dark": "/themes/Dark", "light": "/themes/light"}
        assert (cache_dir / "theme" / "dark.yml").is_file()
        assert (cache_dir / "theme" / "light.yml").is_file()


class TestRoundTrip:
    def test_bulk_cache_survives_a_new_process(self, tree, make_catalog, cache_dir):
        tree.plugin("alpha", version="1.0", priority=3)
        tree.plugin("Beta", version="2.1")
        tree.add("app", {"type": "application", "version": "0.1"}, scan_dir="applications")

        scanned = make_catalog().scan(AddonType.ADDON, persist=True)
        cold = AddonCatalog(tree.root, {"addon": ["/plugins"]}, cache_dir=cache_dir, addon_factory=_refuse)

        loaded = cold.lookup_all_by_type(AddonType.ADDON)

        assert _identity(loaded) == _identity(scanned)
        assert loaded == scanned

    @pytest.mark.parametrize("addon_type", [AddonType.THEME, AddonType.LOCALE])
    def test_single_cache_survives_a_new_process(self, tree, make_catalog, cache_dir, addon_type):
        add = tree.theme if addon_type == AddonType.THEME else tree.locale
        add("first", version="1.0")
        add("second", version="2.0", priority=50)

        scanned = make_catalog().scan(addon_type, persist=True)
        cold = AddonCatalog(tree.root, {addon_type: []}, cache_dir=cache_dir, addon_factory=_refuse)

        assert _identity(cold.lookup_all_by_type(addon_type)) == _identity(scanned)
        assert cold.lookup_by_type("SECOND", addon_type).priority == 50

    def test_first_lookup_builds_the_bulk_cache(self, tree, make_catalog, cache_dir):
        tree.plugin("lazy")

        assert make_catalog().lookup_addon("lazy") is not None
        assert (cache_dir / "addon.yml").is_file()

    def test_malformed_bulk_cache_is_rebuilt(self, tree, make_catalog, cache_dir):
        tree.plugin("sturdy")
        cache_dir.mkdir(parents=True)
        (cache_dir / "addon.yml").write_text("sturdy: {name: Sturdy}\n", encoding="utf-8")

        assert make_catalog().lookup_addon("sturdy").subdir == "/plugins/sturdy"
        data = yaml.safe_load((cache_dir / "addon.yml").read_text(encoding="utf-8"))
        assert data["sturdy"]["key"] == "sturdy"

    def test_undecodable_bulk_cache_is_rebuilt(self, tree, make_catalog, cache_dir):
        tree.plugin("good")
        cache_dir.mkdir(parents=True)
        (cache_dir / "addon.yml").write_bytes(b"\xff\xfe\x00garbage")

        assert make_catalog().lookup_addon("good").key == "good"

    def test_malformed_single_cache_entry_is_rescanned(self, tree, make_catalog, cache_dir):
        tree.theme("plain")
        (cache_dir / "theme").mkdir(parents=True)
        (cache_dir / "theme" / "plain.yml").write_text("{type: bogus}\n", encoding="utf-8")

        assert make_catalog().lookup_theme("plain").subdir == "/themes/plain"


class TestLookup:
    def test_lookup_addon_is_case_insensitive(self, tree, make_catalog):
        tree.plugin("FooBar")

        catalog = make_catalog()

        assert catalog.lookup_addon("FOOBAR").subdir == "/plugins/FooBar"
        assert catalog.lookup_by_type("foobar", "addon").key == "foobar"
        assert catalog.lookup_addon("nope") is None

    def test_lookup_without_cache_dir_scans_in_memory(self, tree, make_catalog, cache_dir):
        tree.plugin("memory")

        catalog = make_catalog(cached=False)

        assert catalog.lookup_addon("memory") is not None
        assert not cache_dir.exists()

    def test_single_lookup_finds_folder_case_insensitively(self, tree, make_catalog):
        tree.theme("MyTheme", parentTheme="base")

        theme = make_catalog().lookup_theme("mytheme")

        assert theme.subdir == "/themes/MyTheme"
        assert theme.get_info_value("parentTheme") == "base"

    def test_single_lookup_remembers_misses(self, tree, make_catalog, cache_dir):
        catalog = make_catalog()

        assert catalog.lookup_locale("klingon") is None
        assert (cache_dir / "locale" / "klingon.yml").is_file()

        # Installing it later is invisible until the cache is cleared
        tree.locale("klingon")
        assert make_catalog().lookup_locale("klingon") is None

        catalog.clear_cache()
        assert catalog.lookup_locale("klingon") is not None

    def test_single_lookup_of_invalid_addon_raises(self, tree, make_catalog):
        tree.add("broken", None, scan_dir="themes")

        with pytest.raises(AddonConstructionError):
            make_catalog().lookup_theme("broken")


class TestSelfHealingIndex:
    def test_invalid_entries_are_dropped_from_the_index(self, tree, make_catalog, cache_dir, caplog):
        tree.theme("good")
        tree.add("broken", None, scan_dir="themes")
        make_catalog().scan(AddonType.THEME, persist=True)

        index_path = cache_dir / "theme-index.yml"
        assert "broken" in yaml.safe_load(index_path.read_text(encoding="utf-8"))

        with caplog.at_level(logging.WARNING, logger="addonmgr"):
            themes = make_catalog().lookup_all_by_type(AddonType.THEME)

        assert list(themes) == ["good"]
        assert "/themes/broken" in caplog.text
        assert yaml.safe_load(index_path.read_text(encoding="utf-8")) == {"good": "/themes/good"}

    def test_removed_addons_are_dropped_from_the_index(self, tree, make_catalog, cache_dir):
        tree.locale("en")
        tree.locale("gone")
        make_catalog().scan(AddonType.LOCALE, persist=True)
        (cache_dir / "locale" / "gone.yml").unlink()
        for path in sorted((tree.root / "locales" / "gone").iterdir()):
            path.unlink()
        (tree.root / "locales" / "gone").rmdir()

        locales = make_catalog().lookup_all_by_type(AddonType.LOCALE)

        assert list(locales) == ["en"]
        index = yaml.safe_load((cache_dir / "locale-index.yml").read_text(encoding="utf-8"))
        assert index == {"en": "/locales/en"}
        assert not (cache_dir / "locale" / "gone.yml").exists()

    def test_index_is_built_from_the_scan_roots_when_missing(self, tree, make_catalog, cache_dir):
        tree.theme("one")

        themes = make_catalog().lookup_all_by_type(AddonType.THEME)

        assert list(themes) == ["one"]
        assert (cache_dir / "theme-index.yml").is_file()


class TestClearCache:
    def test_clear_cache_forces_a_rescan(self, tree, make_catalog, cache_dir):
        tree.plugin("early")
        make_catalog().scan(AddonType.ADDON, persist=True)
        tree.plugin("late")

        catalog = make_catalog()
        assert catalog.lookup_addon("late") is None

        assert catalog.clear_cache()
        assert not (cache_dir / "addon.yml").exists()
        assert catalog.lookup_addon("late") is not None
        assert catalog.lookup_addon("early") is not None
