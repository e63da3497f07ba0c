"""Version requirement checks for addon dependencies"""

from typing import Optional, Tuple

OPERATORS = (">=", "<=", "!=", "==", ">", "<", "=")


def parse_version(version: str) -> Tuple[int, ...]:
    """
    Parse a version string into a tuple of integers.

    Leading "v" is ignored and each dotted part contributes its leading
    digits, so "2.1.0-beta" parses as (2, 1, 0).
    """
    parts = []
    for part in str(version).strip().lstrip("vV").split("."):
        num = ""
        for ch in part:
            if ch.isdigit():
                num += ch
            else:
                break
        if num:
            parts.append(int(num))
    return tuple(parts)


def compare_versions(left: str, right: str) -> int:
    """Compare two versions, returning -1, 0 or 1."""
    left_v = parse_version(left)
    right_v = parse_version(right)
    width = max(len(left_v), len(right_v))
    left_v = left_v + (0,) * (width - len(left_v))
    right_v = right_v + (0,) * (width - len(right_v))
    return (left_v > right_v) - (left_v < right_v)


def _split_constraint(constraint: str) -> Tuple[str, str]:
    for candidate in OPERATORS:
        if constraint.startswith(candidate):
            return candidate, constraint[len(candidate):].strip()
    # A bare version means "at least this version".
    return ">=", constraint


def check_version(version: str, requirement: Optional[str]) -> bool:
    """
    Check whether a version satisfies a requirement string.

    Args:
        version: The version of the addon, e.g. "1.2.0"
        requirement: One or more comma separated constraints such as
            ">=1.0", "<2.0" or "1.0". Empty or "*" matches everything.

    Returns:
        True if every constraint holds
    """
    if requirement is None:
        return True

    for constraint in str(requirement).split(","):
        constraint = constraint.strip()
        if not constraint or constraint == "*":
            continue

        op, target = _split_constraint(constraint)
        cmp = compare_versions(version, target)

        if op == ">=" and cmp < 0:
            return False
        if op == "<=" and cmp > 0:
            return False
        if op == ">" and cmp <= 0:
            return False
        if op == "<" and cmp >= 0:
            return False
        if op in ("==", "=") and cmp != 0:
            return False
        if op == "!=" and cmp == 0:
            return False

    return True
