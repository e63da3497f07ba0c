"""Tests for requirement and dependant resolution."""

import pytest

from addonmgr.core.requirements import RequirementStatus
from addonmgr.exceptions import DependantsBlockingError, RequirementsNotMetError


def _statuses(rows):
    return {key: row.status for key, row in rows.items()}


@pytest.fixture
def manager(make_manager):
    return make_manager()


def test_missing_requirement(tree, manager):
    tree.plugin("a", priority=0, require={"b": ">=1.0"})
    a = manager.lookup_addon("a")

    rows = manager.lookup_requirements(a)

    assert _statuses(rows) == {"b": RequirementStatus.MISSING}
    assert rows["b"].requirement == ">=1.0"
    assert rows["b"].is_problem
    assert manager.check_requirements(a) is False
    with pytest.raises(RequirementsNotMetError) as excinfo:
        manager.check_requirements(a, throw=True)
    assert "b" in str(excinfo.value)
    assert excinfo.value.unmet == ["b"]


def test_version_mismatch(tree, manager):
    tree.plugin("a", require={"b": ">=1.0"})
    tree.plugin("b", name="Bee", version="0.9")
    a = manager.lookup_addon("a")

    assert _statuses(manager.lookup_requirements(a)) == {"b": RequirementStatus.VERSION}
    with pytest.raises(RequirementsNotMetError, match="Bee >=1.0"):
        manager.check_requirements(a, throw=True)


def test_disabled_requirement_that_could_be_enabled(tree, manager):
    tree.plugin("a", require={"b": ">=0.5"})
    tree.plugin("b", version="0.9")
    a = manager.lookup_addon("a")

    assert _statuses(manager.lookup_requirements(a)) == {"b": RequirementStatus.DISABLED}
    assert manager.check_requirements(a, throw=True) is True


def test_enabled_requirement_is_not_expanded(tree, manager):
    tree.plugin("a", require={"b": "1.0"})
    tree.plugin("b", version="1.0", require={"c": "1.0"})
    manager.start_addons_by_key(["b"], "addon")
    a = manager.lookup_addon("a")

    assert _statuses(manager.lookup_requirements(a)) == {"b": RequirementStatus.ENABLED}
    assert manager.check_requirements(a)


def test_disabled_requirements_are_expanded(tree, manager):
    tree.plugin("a", require={"b": "1.0"})
    tree.plugin("b", version="1.0", require={"c": "1.0", "d": ">=2"})
    tree.plugin("d", version="1.5")
    a = manager.lookup_addon("a")

    rows = manager.lookup_requirements(a)

    assert list(rows) == ["b", "c", "d"]
    assert _statuses(rows) == {
        "b": RequirementStatus.DISABLED,
        "c": RequirementStatus.MISSING,
        "d": RequirementStatus.VERSION,
    }
    assert manager.check_requirements(a) is False
    with pytest.raises(RequirementsNotMetError) as excinfo:
        manager.check_requirements(a, throw=True)
    assert excinfo.value.unmet == ["c", "d >=2"]


def test_requirement_keys_are_case_insensitive(tree, manager):
    tree.plugin("a", require={"OtherAddon": "1.0"})
    tree.plugin("otheraddon", version="1.0")

    rows = manager.lookup_requirements(manager.lookup_addon("a"))

    assert _statuses(rows) == {"otheraddon": RequirementStatus.DISABLED}
    assert rows["otheraddon"].key == "otheraddon"


def test_requirement_cycle_terminates(tree, manager):
    tree.plugin("a", version="1.0", require={"b": "1.0"})
    tree.plugin("b", version="1.0", require={"a": "1.0"})

    rows = manager.lookup_requirements(manager.lookup_addon("a"))

    assert list(rows) == ["b", "a"]
    assert all(row.status == RequirementStatus.DISABLED for row in rows.values())


def test_first_visited_status_wins(tree, manager):
    tree.plugin("a", require={"b": ">=2.0", "c": "1.0"})
    tree.plugin("b", version="1.0")
    tree.plugin("c", version="1.0", require={"b": ">=0.5"})

    rows = manager.lookup_requirements(manager.lookup_addon("a"))

    assert rows["b"].status == RequirementStatus.VERSION
    assert rows["b"].requirement == ">=2.0"


def test_filter_keeps_matching_statuses(tree, manager):
    tree.plugin("a", require={"b": "1.0", "c": "1.0", "d": "1.0"})
    tree.plugin("b", version="1.0")
    tree.plugin("d", version="1.0")
    manager.start_addons_by_key(["d"], "addon")
    a = manager.lookup_addon("a")

    problems = manager.lookup_requirements(a, RequirementStatus.PROBLEMS)
    satisfied = manager.lookup_requirements(a, RequirementStatus.ENABLED | RequirementStatus.DISABLED)

    assert list(problems) == ["c"]
    assert list(satisfied) == ["b", "d"]


def test_no_requirements(tree, manager):
    tree.plugin("lonely")
    lonely = manager.lookup_addon("lonely")

    assert manager.lookup_requirements(lonely) == {}
    assert manager.check_requirements(lonely, throw=True)


class TestDependants:
    def test_enabled_dependants_block_a_stop(self, tree, manager):
        tree.plugin("base")
        tree.plugin("child", name="Child", require={"BASE": "*"})
        tree.plugin("idle", require={"base": "*"})
        manager.start_addons_by_key(["base", "child"], "addon")
        base = manager.lookup_addon("base")

        dependants = manager.lookup_dependants(base)

        assert list(dependants) == ["addon/child"]
        assert manager.check_dependants(base) is False
        with pytest.raises(DependantsBlockingError, match="Child"):
            manager.check_dependants(base, throw=True)

    def test_no_dependants_once_they_are_stopped(self, tree, manager):
        tree.plugin("base")
        tree.plugin("child", require={"base": "*"})
        manager.start_addons_by_key(["base", "child"], "addon")
        manager.stop_addons_by_key(["child"], "addon")
        base = manager.lookup_addon("base")

        assert manager.lookup_dependants(base) == {}
        assert manager.check_dependants(base, throw=True) is True
