"""Tests for the theme chain and asset lookup."""

import logging

import pytest

from addonmgr.core import themes
from addonmgr.core.addon import AddonType


@pytest.fixture
def manager(make_manager):
    return make_manager()


def _start_theme(manager, key):
    assert manager.start_addons_by_key([key], AddonType.THEME) == 1


def test_theme_chain_follows_parents(tree, manager):
    tree.theme("child", parentTheme="Parent")
    tree.theme("parent", parentTheme="grand")
    tree.theme("grand")
    _start_theme(manager, "child")

    assert manager.theme_subdirs() == ["/themes/child", "/themes/parent", "/themes/grand"]


def test_theme_chain_stops_on_a_cycle(tree, manager):
    tree.theme("x", parentTheme="y")
    tree.theme("y", parentTheme="x")
    _start_theme(manager, "x")

    assert manager.theme_subdirs() == ["/themes/x", "/themes/y"]


def test_theme_chain_stops_on_a_self_reference(tree, manager):
    tree.theme("narcissus", parentTheme="narcissus")
    _start_theme(manager, "narcissus")

    assert manager.theme_subdirs() == ["/themes/narcissus"]


def test_missing_parent_ends_the_chain(tree, manager, caplog):
    tree.theme("orphan", parentTheme="nobody")
    _start_theme(manager, "orphan")

    with caplog.at_level(logging.WARNING, logger="addonmgr"):
        assert manager.theme_subdirs() == ["/themes/orphan"]

    assert "nobody" in caplog.text


def test_no_theme_means_no_chain(manager):
    assert manager.theme_subdirs() == []


def test_chain_is_rebuilt_when_the_theme_changes(tree, manager):
    tree.theme("one")
    tree.theme("two", parentTheme="one")

    _start_theme(manager, "one")
    assert manager.theme_subdirs() == ["/themes/one"]

    _start_theme(manager, "two")
    assert manager.theme_subdirs() == ["/themes/two", "/themes/one"]


def test_theme_subdirs_function_with_plain_lookup(make_addon):
    base = make_addon("base", addon_type=AddonType.THEME)
    skin = make_addon("skin", addon_type=AddonType.THEME, info={"parentTheme": "base"})
    lookup = {"base": base, "skin": skin}.get

    assert themes.theme_subdirs(skin, lookup) == ["/themes/skin", "/themes/base"]
    assert themes.theme_subdirs(None, lookup) == []


class TestLookupAsset:
    @pytest.fixture
    def plugin(self, tree, manager):
        tree.theme(
            "child",
            parentTheme="parent",
            files={"views/a.tpl": "child a", "views/shared.tpl": "child shared"},
        )
        tree.theme("parent", files={"views/b.tpl": "parent b", "views/shared.tpl": "parent shared"})
        tree.plugin("forum", files={"views/a.tpl": "forum a", "views/c.tpl": "forum c"})
        _start_theme(manager, "child")
        return manager.lookup_addon("forum")

    def test_most_specific_theme_wins(self, manager, plugin):
        assert manager.lookup_asset("views/a.tpl", plugin) == "/themes/child/views/a.tpl"
        assert manager.lookup_asset("/views/shared.tpl") == "/themes/child/views/shared.tpl"

    def test_parent_theme_is_searched_next(self, manager, plugin):
        assert manager.lookup_asset("views/b.tpl", plugin) == "/themes/parent/views/b.tpl"

    def test_addon_is_searched_last(self, manager, plugin):
        assert manager.lookup_asset("views/c.tpl", plugin) == "/plugins/forum/views/c.tpl"

    def test_missing_asset(self, manager, plugin):
        assert manager.lookup_asset("views/none.tpl", plugin) == ""
        assert manager.lookup_asset("views/none.tpl") == ""
        assert manager.lookup_asset("views/none.tpl", plugin, must_exist=False) == "/plugins/forum/views/none.tpl"
