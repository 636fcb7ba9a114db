"""Filter contract and filter-factory registry used by the router.

Source of truth
---------------
If this module were wiped except for this docstring, the implementation must be
reconstructed exactly as described below.

Objects
~~~~~~~
``FilterPhase``
    The three points where a filter can veto something:

    - ``SEARCH`` – before dispatching a search request
    - ``QUERY`` – before dispatching a query request
    - ``EXTENSION`` – per extension returned by a registry

``RouterFilter``
    Base class for every filter. A filter declares the phases it implements in
    the class attribute ``phases`` (a frozenset of ``FilterPhase``). The router
    never probes for methods: it calls ``evaluate(phase, subject)`` which

    - returns ``None`` when ``phase`` is not in ``phases`` (the filter does not
      take part in that phase and is ignored by rule evaluation)
    - otherwise dispatches to ``filter_search_options``,
      ``filter_query_options`` or ``filter_extension`` and awaits the result
      when the predicate is a coroutine.

    ``phase`` may be a ``FilterPhase`` or its string value (``"search"``, ...);
    strings are converted first, an unknown value raises ``ValueError``.

``FilterClaim``
    Frozen pair ``(filter, claimed)`` returned by factories: the built filter
    and the condition keys it consumed. The rule parser accumulates claims and
    computes leftovers itself, so factories never mutate shared state.

``FilterFactory``
    Any callable ``(conditions, keys) -> FilterClaim | None`` (or an awaitable
    of it). ``conditions`` is a read-only mapping of the rule's condition keys;
    ``keys`` is a frozenset snapshot of the same keys.

``create_filter_factory(condition_key, build)``
    Helper for factories that handle a single key: when the key is present and
    ``build(value)`` returns a filter, the key is claimed.

Registry
~~~~~~~~
``register_filter_factory(factory, name=None)`` stores a factory under
``name`` or, by default, its ``condition_key`` attribute. Without an explicit
name, registering a different factory under an existing key raises
``ValueError``; re-registering the same factory is idempotent. With an explicit
name, the registration overwrites. ``available_filter_factories()`` returns a
shallow copy of the registry in registration order.
"""

from __future__ import annotations

import enum
import inspect
from dataclasses import dataclass
from types import MappingProxyType
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    FrozenSet,
    Mapping,
    Optional,
    Union,
)

__all__ = [
    "FilterPhase",
    "RouterFilter",
    "FilterClaim",
    "FilterFactory",
    "create_filter_factory",
    "register_filter_factory",
    "available_filter_factories",
    "freeze_conditions",
]


class FilterPhase(str, enum.Enum):
    SEARCH = "search"
    QUERY = "query"
    EXTENSION = "extension"


class RouterFilter:
    """Predicate object attached to a parsed rule."""

    phases: FrozenSet[FilterPhase] = frozenset()

    def supports(self, phase: Union[FilterPhase, str]) -> bool:
        return FilterPhase(phase) in self.phases

    async def evaluate(self, phase: Union[FilterPhase, str], subject: Any) -> Optional[Any]:
        """Run the predicate for ``phase``; ``None`` means "not applicable"."""
        phase = FilterPhase(phase)
        if not self.supports(phase):
            return None
        if phase is FilterPhase.SEARCH:
            verdict = self.filter_search_options(subject)
        elif phase is FilterPhase.QUERY:
            verdict = self.filter_query_options(subject)
        else:
            verdict = self.filter_extension(subject)
        if inspect.isawaitable(verdict):
            verdict = await verdict
        return verdict

    def filter_search_options(self, options: Any) -> Any:  # pragma: no cover - abstract
        raise NotImplementedError(f"{type(self).__name__} does not filter search options")

    def filter_query_options(self, options: Any) -> Any:  # pragma: no cover - abstract
        raise NotImplementedError(f"{type(self).__name__} does not filter query options")

    def filter_extension(self, extension: Any) -> Any:  # pragma: no cover - abstract
        raise NotImplementedError(f"{type(self).__name__} does not filter extensions")


@dataclass(frozen=True)
class FilterClaim:
    filter: RouterFilter
    claimed: FrozenSet[str]


FilterFactory = Callable[
    [Mapping[str, Any], FrozenSet[str]],
    Union[Optional[FilterClaim], Awaitable[Optional[FilterClaim]]],
]

_FACTORY_REGISTRY: Dict[str, FilterFactory] = {}


def create_filter_factory(
    condition_key: str, build: Callable[[Any], Optional[RouterFilter]]
) -> FilterFactory:
    """Return a factory claiming ``condition_key`` when ``build`` yields a filter."""

    def factory(conditions: Mapping[str, Any], keys: FrozenSet[str]) -> Optional[FilterClaim]:
        if condition_key not in keys:
            return None
        built = build(conditions[condition_key])
        if built is None:
            return None
        return FilterClaim(built, frozenset({condition_key}))

    factory.condition_key = condition_key  # type: ignore[attr-defined]
    factory.__name__ = f"{condition_key}_factory"
    return factory


def register_filter_factory(factory: FilterFactory, name: Optional[str] = None) -> None:
    """Register a filter factory globally.

    Args:
        factory: Callable following the ``FilterFactory`` contract.
        name: Optional override name. If provided, overwrites any existing
              registration. If not provided, uses ``factory.condition_key``
              and raises if another factory already owns it.
    """
    if not callable(factory):
        raise TypeError("factory must be callable")
    code = name or getattr(factory, "condition_key", None)
    if not code:
        raise ValueError(
            f"Filter factory {factory!r} not following standards: missing condition_key"
        )
    if name is None:
        existing = _FACTORY_REGISTRY.get(code)
        if existing is not None and existing is not factory:
            raise ValueError(f"Filter factory '{code}' already registered")
    _FACTORY_REGISTRY[code] = factory


def available_filter_factories() -> Dict[str, FilterFactory]:
    return dict(_FACTORY_REGISTRY)


def freeze_conditions(conditions: Mapping[str, Any]) -> Mapping[str, Any]:
    return MappingProxyType(dict(conditions))
