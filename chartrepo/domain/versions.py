"""
Ordering of chart version strings.

Versions are compared as semantic versions. Strings that do not parse are
"malformed" and are ordered after every well-formed version.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from semver import Version

from chartrepo.domain.models import ChartVersion

logger = logging.getLogger(__name__)


def parse_version(version: str) -> Optional[Version]:
    """
    Leniently parse a semantic version.

    A leading ``v`` is ignored and a missing minor or patch component counts
    as 0, so "v1.2" parses as 1.2.0. Returns None for anything else that is
    not a semantic version.
    """
    if not isinstance(version, str) or not version:
        return None
    candidate = version[1:] if version[:1] in ("v", "V") else version
    try:
        return Version.parse(candidate, optional_minor_and_patch=True)
    except ValueError:
        return None


def version_less(a: str, b: str) -> bool:
    """
    Report whether version ``a`` is strictly less than version ``b``.

    This mirrors the comparator used when sorting index entries and is not a
    total order: an unparsable ``a`` is always "less", even when ``b`` is also
    unparsable, so ``version_less(x, y)`` and ``version_less(y, x)`` can both
    be true. Use ``sort_versions`` to order a list rather than building a
    sort on top of this function.
    """
    left = parse_version(a)
    if left is None:
        return True
    right = parse_version(b)
    if right is None:
        return False
    return left < right


def sort_versions(versions: List[ChartVersion]) -> None:
    """
    Sort a version list in place, highest version first.

    Malformed versions go after all well-formed ones and keep their original
    relative order.
    """

    def key(cv: ChartVersion):
        parsed = parse_version(cv.version)
        if parsed is None:
            return (0, None)
        return (1, parsed)

    # reverse=True keeps equal keys in their original order
    versions.sort(key=key, reverse=True)
