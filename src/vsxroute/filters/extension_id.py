"""``ifExtensionIdMatches`` filter.

The condition value is a case-insensitive regular expression searched in the
extension identifier ``"<namespace>.<name>"``. Only the ``EXTENSION`` phase is
implemented, so a rule built from this condition alone never matches a
request and only decides which registries an extension may come from.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from vsxroute.core.models import extension_id
from vsxroute.filters._base_filter import (
    FilterPhase,
    RouterFilter,
    create_filter_factory,
    register_filter_factory,
)

__all__ = ["ExtensionIdMatchesFilter", "extension_id_matches_factory"]


class ExtensionIdMatchesFilter(RouterFilter):
    phases = frozenset({FilterPhase.EXTENSION})

    def __init__(self, pattern: "re.Pattern[str]"):
        self.pattern = pattern

    def __repr__(self) -> str:
        return f"ExtensionIdMatchesFilter({self.pattern.pattern!r})"

    def filter_extension(self, extension: Any) -> bool:
        return self.pattern.search(extension_id(extension)) is not None


def _build(value: Any) -> Optional[ExtensionIdMatchesFilter]:
    if isinstance(value, str):
        return ExtensionIdMatchesFilter(re.compile(value, re.IGNORECASE))
    return None


extension_id_matches_factory = create_filter_factory("ifExtensionIdMatches", _build)

register_filter_factory(extension_id_matches_factory)
