"""Requirement resolution between addons"""

from collections import OrderedDict
from dataclasses import dataclass
from enum import IntFlag
from typing import TYPE_CHECKING, Callable, Dict, Iterator, List, Optional, Tuple

from addonmgr.core.addon import Addon
from addonmgr.exceptions import DependantsBlockingError, RequirementsNotMetError

if TYPE_CHECKING:
    from addonmgr.core.catalog import AddonCatalog


class RequirementStatus(IntFlag):
    """Status of a required addon relative to the catalog and the enabled set."""

    ENABLED = 0x01
    DISABLED = 0x02
    MISSING = 0x04
    VERSION = 0x08

    PROBLEMS = MISSING | VERSION


@dataclass(frozen=True)
class Requirement:
    """One resolved requirement row."""

    key: str
    requirement: str
    status: RequirementStatus

    @property
    def is_problem(self) -> bool:
        return bool(self.status & RequirementStatus.PROBLEMS)


class DependencyResolver:
    """
    Walks declared requirements against the catalog and the enabled set.

    Args:
        catalog: Catalog used to resolve required keys
        is_enabled: Callable answering whether an addon is currently enabled
        get_enabled: Callable returning the enabled addons
    """

    def __init__(
        self,
        catalog: "AddonCatalog",
        is_enabled: Callable[[Addon], bool],
        get_enabled: Callable[[], List[Addon]],
    ):
        self.catalog = catalog
        self._is_enabled = is_enabled
        self._get_enabled = get_enabled

    def lookup_requirements(
        self, addon: Addon, status_filter: Optional[RequirementStatus] = None
    ) -> "OrderedDict[str, Requirement]":
        """
        Get all of the requirements of an addon, transitively.

        Requirements are walked depth-first in declaration order. A key is
        classified the first time it is reached and never revisited, which
        also makes requirement cycles terminate. Enabled requirements are not
        expanded; disabled and version-mismatched ones are.

        Args:
            addon: The addon to check
            status_filter: Keep only rows whose status intersects this mask

        Returns:
            Ordered mapping of lower-cased addon key to Requirement
        """
        result: "OrderedDict[str, Requirement]" = OrderedDict()
        stack: List[Iterator[Tuple[str, str]]] = [iter(addon.requirements.items())]

        while stack:
            try:
                required_key, version_req = next(stack[-1])
            except StopIteration:
                stack.pop()
                continue

            key = required_key.lower()
            if key in result:
                continue

            required = self.catalog.lookup_addon(key)
            if required is None:
                status = RequirementStatus.MISSING
            elif self._is_enabled(required):
                status = RequirementStatus.ENABLED
            elif required.satisfies(version_req):
                status = RequirementStatus.DISABLED
            else:
                status = RequirementStatus.VERSION

            result[key] = Requirement(key=key, requirement=version_req, status=status)

            if required is not None and status != RequirementStatus.ENABLED:
                stack.append(iter(required.requirements.items()))

        if status_filter:
            result = OrderedDict(
                (key, row) for key, row in result.items() if row.status & status_filter
            )

        return result

    def check_requirements(self, addon: Addon, throw: bool = False) -> bool:
        """
        Check an addon's requirements.

        Requirements that are merely disabled pass, as long as their own
        requirements pass too.

        Raises:
            RequirementsNotMetError: If ``throw`` and requirements are unmet
        """
        problems = self.lookup_requirements(addon, RequirementStatus.PROBLEMS)
        if not problems:
            return True
        if not throw:
            return False

        unmet = []
        for key, row in problems.items():
            if row.status == RequirementStatus.MISSING:
                unmet.append(key)
            else:
                required = self.catalog.lookup_addon(key)
                unmet.append(f"{required.name} {row.requirement}")

        raise RequirementsNotMetError(addon.name, unmet, dict(problems))

    def lookup_dependants(self, addon: Addon) -> Dict[str, Addon]:
        """
        Get the enabled addons that require a given addon.

        Returns:
            Mapping of "type/key" to Addon
        """
        result: Dict[str, Addon] = {}
        for enabled in self._get_enabled():
            if addon.key in enabled.get_requirements_lower():
                result[enabled.enabled_key] = enabled
        return result

    def check_dependants(self, addon: Addon, throw: bool = False) -> bool:
        """
        Check that no enabled addon depends on an addon.

        Run this before stopping an addon.

        Raises:
            DependantsBlockingError: If ``throw`` and there are enabled dependants
        """
        dependants = self.lookup_dependants(addon)
        if not dependants:
            return True
        if not throw:
            return False

        raise DependantsBlockingError(addon.name, [d.name for d in dependants.values()])
