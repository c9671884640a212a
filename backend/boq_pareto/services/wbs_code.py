"""WBS code analysis — hierarchy depth and parent derivation from dotted item codes.

Pure string operations: segments are never interpreted as numbers, so codes
like ``"A.1"`` or ``"1.10"`` are taken as-is.
"""
from typing import Optional

from boq_pareto.config import WBS_SEPARATOR


def wbs_level(code) -> int:
    """
    1-based depth of ``code``: the count of dot-separated segments.

    ``"7"`` → 1, ``"1.2.3"`` → 3. Empty or non-string input defaults to 1.
    """
    if not code or not isinstance(code, str):
        return 1
    return len(code.split(WBS_SEPARATOR))


def parent_code(code) -> Optional[str]:
    """
    ``code`` with its last segment removed, or None for a level-1 code.

    ``"1.2.3"`` → ``"1.2"``, ``"7"`` → None.
    """
    if not code or not isinstance(code, str):
        return None
    parts = code.split(WBS_SEPARATOR)
    if len(parts) <= 1:
        return None
    return WBS_SEPARATOR.join(parts[:-1])


def is_direct_child(code: str, parent: str, level: int) -> bool:
    """True when ``code`` sits exactly one level below ``parent`` at depth ``level``."""
    if not code or not parent:
        return False
    return (
        code.startswith(parent + WBS_SEPARATOR)
        and code.count(WBS_SEPARATOR) == level - 1
    )
