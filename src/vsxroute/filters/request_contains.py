"""``ifRequestContains`` filter (source of truth).

Rebuild behaviour exactly as described; no hidden defaults beyond this text.

Condition
---------
``{"ifRequestContains": "<regex>", "use": ...}``. The value is compiled as a
case-insensitive regular expression and searched (``re.search``) in the
request. Non-string values are not claimed, so they surface as unknown
conditions when the rule is parsed.

Phases
------
- ``SEARCH``: passes when the query text or the category matches.
- ``QUERY``: passes when any string option value (namespace, extension name,
  id, version, uuid, ...) matches.
- A request without options contains nothing, so it never passes.
- ``EXTENSION``: not implemented; the filter is ignored for that phase.

Registration
------------
At module import the factory registers itself globally under
``"ifRequestContains"`` via ``register_filter_factory``.
"""

from __future__ import annotations

import re
from typing import Any, Optional

from vsxroute.core.models import QueryOptions, SearchOptions
from vsxroute.filters._base_filter import (
    FilterPhase,
    RouterFilter,
    create_filter_factory,
    register_filter_factory,
)

__all__ = ["RequestContainsFilter", "request_contains_factory"]


class RequestContainsFilter(RouterFilter):
    """Match a regular expression against the outgoing request."""

    phases = frozenset({FilterPhase.SEARCH, FilterPhase.QUERY})

    def __init__(self, pattern: "re.Pattern[str]"):
        self.pattern = pattern

    def __repr__(self) -> str:
        return f"RequestContainsFilter({self.pattern.pattern!r})"

    def filter_search_options(self, options: Optional[SearchOptions]) -> bool:
        if options is None:
            return False
        return self._test(options.query) or self._test(options.category)

    def filter_query_options(self, options: Optional[QueryOptions]) -> bool:
        if options is None:
            return False
        return any(self._test(value) for value in options.model_dump().values())

    def _test(self, value: Any) -> bool:
        return isinstance(value, str) and self.pattern.search(value) is not None


def _build(value: Any) -> Optional[RequestContainsFilter]:
    if isinstance(value, str):
        return RequestContainsFilter(re.compile(value, re.IGNORECASE))
    return None


request_contains_factory = create_filter_factory("ifRequestContains", _build)

register_filter_factory(request_contains_factory)
