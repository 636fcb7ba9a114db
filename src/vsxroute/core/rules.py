"""Rule compilation (source of truth).

``parse_rules(rules, filter_factories, aliases=None)`` turns the ordered raw
rules of a router configuration into ``ParsedRule`` values.

Per rule
--------
1. Split ``use`` from the remaining condition keys.
2. Invoke every factory concurrently with a read-only view of the conditions
   and a frozenset snapshot of their keys. Factories may be sync or async.
3. Collect the ``FilterClaim`` values in factory order and accumulate the
   claimed keys:

   - a key claimed by two factories raises ``DuplicateConditionClaimError``
   - a claimed key absent from the rule raises ``RouterConfigError``
   - keys nobody claimed raise ``UnknownConditionsError`` with message
     ``"unknown conditions: <k1>, <k2>"`` (keys in rule order)

4. Resolve ``use`` through ``parse_use``.

Rules are parsed concurrently; the output keeps the configured order.

``parse_use(use, aliases)``: string → one-element list, list → each element
mapped, ``None`` → ``[]``. A value naming an alias becomes the alias URL;
anything else passes through unchanged as a literal URI. Duplicates (after
alias resolution) are dropped, keeping the first occurrence.
"""

from __future__ import annotations

import asyncio
import inspect
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from vsxroute.core.config import RouterRule
from vsxroute.filters._base_filter import (
    FilterClaim,
    FilterFactory,
    RouterFilter,
    freeze_conditions,
)

__all__ = [
    "ParsedRule",
    "RouterConfigError",
    "UnknownConditionsError",
    "DuplicateConditionClaimError",
    "parse_rules",
    "parse_use",
]


class RouterConfigError(ValueError):
    """Router configuration cannot be compiled."""


class UnknownConditionsError(RouterConfigError):
    def __init__(self, keys: Sequence[str]):
        self.keys = tuple(keys)
        super().__init__(f"unknown conditions: {', '.join(self.keys)}")


class DuplicateConditionClaimError(RouterConfigError):
    def __init__(self, key: str):
        self.key = key
        super().__init__(f"condition '{key}' claimed by more than one filter factory")


@dataclass(frozen=True)
class ParsedRule:
    filters: Tuple[RouterFilter, ...]
    use: Tuple[str, ...]


def parse_use(
    use: Union[str, Iterable[str], None], aliases: Optional[Mapping[str, str]] = None
) -> List[str]:
    aliases = aliases or {}
    if isinstance(use, str):
        return [aliases.get(use, use)]
    if use is None:
        return []
    # a registry listed twice is asked once
    return list(dict.fromkeys(aliases.get(item, item) for item in use))


async def parse_rules(
    rules: Sequence[Union[RouterRule, Mapping[str, Any]]],
    filter_factories: Sequence[FilterFactory],
    aliases: Optional[Mapping[str, str]] = None,
) -> List[ParsedRule]:
    return list(
        await asyncio.gather(
            *(_parse_rule(rule, filter_factories, aliases) for rule in rules)
        )
    )


async def _parse_rule(
    rule: Union[RouterRule, Mapping[str, Any]],
    filter_factories: Sequence[FilterFactory],
    aliases: Optional[Mapping[str, str]],
) -> ParsedRule:
    if not isinstance(rule, RouterRule):
        rule = RouterRule.model_validate(rule)
    conditions = freeze_conditions(rule.conditions())
    keys = frozenset(conditions)
    claims = await asyncio.gather(
        *(_run_factory(factory, conditions, keys) for factory in filter_factories)
    )
    filters: List[RouterFilter] = []
    claimed: set[str] = set()
    for claim in claims:
        if claim is None:
            continue
        for key in claim.claimed:
            if key not in keys:
                raise RouterConfigError(f"filter factory claimed unknown key '{key}'")
            if key in claimed:
                raise DuplicateConditionClaimError(key)
            claimed.add(key)
        filters.append(claim.filter)
    remaining = [key for key in conditions if key not in claimed]
    if remaining:
        raise UnknownConditionsError(remaining)
    return ParsedRule(filters=tuple(filters), use=tuple(parse_use(rule.use, aliases)))


async def _run_factory(
    factory: FilterFactory, conditions: Mapping[str, Any], keys: frozenset
) -> Optional[FilterClaim]:
    claim = factory(conditions, keys)
    if inspect.isawaitable(claim):
        claim = await claim
    return claim
