"""Registry router with rule-based dispatch (source of truth).

If this module disappeared, rebuild it exactly as described. ``RouterClient``
exposes the same surface as a single ``RegistryClient`` (``search``/``query``)
but routes each request to zero or more backend registries according to
ordered rules, then agglomerates the per-registry results.

Construction
------------
``RouterClient(use_default, client_provider, rules, *, use_smartasync=None)``
stores the resolved default registry list, the provider and the parsed rules.
All three are immutable for the router's lifetime.

``await RouterClient.from_config(config, client_provider, filter_factories=None)``
validates ``config`` (mapping or ``RouterConfig``), parses its rules with the
given factories (default: every registered factory, see
``available_filter_factories``) and resolves aliases in the default ``use`` and
in every rule. Configuration errors propagate to the caller.

Rule evaluation
---------------
``run_rules(evaluate, on_match, on_no_match=None)`` walks the rules in order.
For each rule it evaluates every filter concurrently, drops ``None`` results
(filter not applicable to the phase) and declares a match when the remaining
list is non-empty and every value is truthy. The first match wins:
``on_match(rule)`` is returned. Without a match ``on_no_match()`` is returned,
or ``None`` when no callback is given. ``evaluate`` and both callbacks may
return plain values or awaitables.

Dispatch
--------
- ``search(options)``: ``SEARCH`` phase on the request. Matched rule with
  registries → ``merged_search(rule.use)``; matched rule without registries →
  empty result (``offset`` = requested offset or 0), no registry contacted;
  no match → ``merged_search(use_default)``.
- ``query(options)``: same with the ``QUERY`` phase; the empty result is
  ``offset=0, total_size=0``.
- Options may be models, mappings (validated) or ``None``.

Fan-out and merge
-----------------
- ``create_mapping(keys, fetch)`` awaits ``fetch(key)`` for every key
  concurrently and returns a dict in key order. Keys are expected to be unique;
  ``parse_use`` already drops repeated registries. ``merged_search`` and
  ``merged_query`` use it to resolve clients through the provider and call
  them. An empty registry list yields the empty result.
- Every returned extension passes through ``filter_extension(source, ext)``:
  ``EXTENSION`` phase; a matching rule keeps the extension only when its
  ``use`` contains ``source``; no match keeps it.
- ``merge_search_results``: per-registry filtered lists combined by
  ``interleave``; ``offset`` is the minimum registry offset.
- ``merge_query_results``: filtered lists flattened in registry order;
  ``offset=0``, ``total_size`` = number of extensions.

Failure and cancellation
------------------------
All joins go through ``_join``: the first failure cancels sibling tasks still
running and propagates unchanged; cancelling the caller cancels every
sub-task. No retries, no partial results.

Synchronous access
------------------
``operation(name, **options)`` returns the bound ``search``/``query``. When
``use_smartasync`` is true (per call, else constructor default; merged with
``SmartOptions``) the coroutine function is wrapped by ``smartasync``. Unknown
names raise ``NotImplementedError``.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import (
    Any,
    Awaitable,
    Callable,
    Dict,
    Iterable,
    List,
    Mapping,
    Optional,
    Sequence,
    TypeVar,
    Union,
)

from smartseeds import SmartOptions

from vsxroute.core.client import ClientProvider, RegistryClient, resolve_client
from vsxroute.core.config import RouterConfig
from vsxroute.core.models import (
    ExtensionLike,
    QueryOptions,
    QueryResult,
    SearchOptions,
    SearchResult,
)
from vsxroute.core.rules import ParsedRule, parse_rules, parse_use
from vsxroute.filters._base_filter import (
    FilterFactory,
    FilterPhase,
    RouterFilter,
    available_filter_factories,
)

__all__ = ["RouterClient", "interleave", "create_mapping"]

T = TypeVar("T")
K = TypeVar("K")
E = TypeVar("E", bound=ExtensionLike)

logger = logging.getLogger("vsxroute.router")


class RouterClient(RegistryClient):
    """Route and agglomerate registry requests according to ordered rules."""

    OPERATIONS = ("search", "query")

    def __init__(
        self,
        use_default: Sequence[str],
        client_provider: ClientProvider,
        rules: Sequence[ParsedRule],
        *,
        use_smartasync: Optional[bool] = None,
    ) -> None:
        self.use_default = tuple(use_default)
        self.client_provider = client_provider
        self.rules = tuple(rules)
        defaults: Dict[str, Any] = {}
        if use_smartasync is not None:
            defaults["use_smartasync"] = use_smartasync
        self._operation_defaults = defaults

    @classmethod
    async def from_config(
        cls,
        config: Union[RouterConfig, Mapping[str, Any]],
        client_provider: ClientProvider,
        filter_factories: Optional[Sequence[FilterFactory]] = None,
        **kwargs: Any,
    ) -> "RouterClient":
        config = RouterConfig.load(config)
        if filter_factories is None:
            filter_factories = list(available_filter_factories().values())
        rules = (
            await parse_rules(config.rules, filter_factories, config.registries)
            if config.rules
            else []
        )
        use_default = parse_use(config.use, config.registries)
        logger.debug("router built: default=%s, %d rule(s)", use_default, len(rules))
        return cls(use_default, client_provider, rules, **kwargs)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    async def search(
        self, options: Union[SearchOptions, Mapping[str, Any], None] = None
    ) -> SearchResult:
        search_options = _coerce(SearchOptions, options)

        async def on_match(rule: ParsedRule) -> SearchResult:
            if rule.use:
                return await self.merged_search(rule.use, search_options)
            logger.debug("search dropped by rule")
            return self.empty_search_result(search_options)

        return await self.run_rules(
            lambda flt: flt.evaluate(FilterPhase.SEARCH, search_options),
            on_match,
            lambda: self.merged_search(self.use_default, search_options),
        )

    async def query(
        self, options: Union[QueryOptions, Mapping[str, Any], None] = None
    ) -> QueryResult:
        query_options = _coerce(QueryOptions, options)

        async def on_match(rule: ParsedRule) -> QueryResult:
            if rule.use:
                return await self.merged_query(rule.use, query_options)
            logger.debug("query dropped by rule")
            return self.empty_query_result(query_options)

        return await self.run_rules(
            lambda flt: flt.evaluate(FilterPhase.QUERY, query_options),
            on_match,
            lambda: self.merged_query(self.use_default, query_options),
        )

    def operation(self, name: str, **options: Any) -> Callable:
        """Return the bound ``search``/``query`` callable, optionally via smartasync."""
        opts = SmartOptions(options, defaults=self._operation_defaults)
        use_smartasync = getattr(opts, "use_smartasync", False)
        if name not in self.OPERATIONS:
            raise NotImplementedError(f"Operation '{name}' not available on router")
        handler = getattr(self, name)
        if use_smartasync:
            from smartasync import smartasync  # type: ignore

            handler = smartasync(handler)
        return handler

    # ------------------------------------------------------------------
    # Results
    # ------------------------------------------------------------------
    def empty_search_result(self, options: Optional[SearchOptions] = None) -> SearchResult:
        offset = options.offset if options is not None and options.offset is not None else 0
        return SearchResult(offset=offset, extensions=[])

    def empty_query_result(self, options: Optional[QueryOptions] = None) -> QueryResult:
        return QueryResult(offset=0, total_size=0, extensions=[])

    async def merged_search(
        self, registries: Sequence[str], options: Optional[SearchOptions] = None
    ) -> SearchResult:
        if not registries:
            logger.warning("search routed to an empty registry set")
            return self.empty_search_result(options)
        logger.debug("search -> %s", ", ".join(registries))

        async def fetch(registry: str) -> SearchResult:
            client = await resolve_client(self.client_provider, registry)
            return await client.search(options)

        return await self.merge_search_results(await create_mapping(registries, fetch))

    async def merged_query(
        self, registries: Sequence[str], options: Optional[QueryOptions] = None
    ) -> QueryResult:
        if not registries:
            logger.warning("query routed to an empty registry set")
            return self.empty_query_result(options)
        logger.debug("query -> %s", ", ".join(registries))

        async def fetch(registry: str) -> QueryResult:
            client = await resolve_client(self.client_provider, registry)
            return await client.query(options)

        return await self.merge_query_results(await create_mapping(registries, fetch))

    async def merge_search_results(self, results: Mapping[str, SearchResult]) -> SearchResult:
        filtered = await _join(
            self._filter_extensions(source, result.extensions)
            for source, result in results.items()
        )
        return SearchResult(
            offset=min(result.offset for result in results.values()),
            extensions=interleave(filtered),
        )

    async def merge_query_results(self, results: Mapping[str, QueryResult]) -> QueryResult:
        filtered = await _join(
            self._filter_extensions(source, result.extensions)
            for source, result in results.items()
        )
        extensions = [extension for chunk in filtered for extension in chunk]
        return QueryResult(offset=0, total_size=len(extensions), extensions=extensions)

    async def filter_extension(self, source: str, extension: E) -> Optional[E]:
        def on_match(rule: ParsedRule) -> Optional[E]:
            if source in rule.use:
                return extension
            logger.debug("dropping %s from %s", extension.id, source)
            return None

        return await self.run_rules(
            lambda flt: flt.evaluate(FilterPhase.EXTENSION, extension),
            on_match,
            lambda: extension,
        )

    async def _filter_extensions(self, source: str, extensions: Sequence[E]) -> List[E]:
        kept = await _join(self.filter_extension(source, extension) for extension in extensions)
        return [extension for extension in kept if extension is not None]

    # ------------------------------------------------------------------
    # Rule evaluation
    # ------------------------------------------------------------------
    async def run_rules(
        self,
        evaluate: Callable[[RouterFilter], Any],
        on_match: Callable[[ParsedRule], Any],
        on_no_match: Optional[Callable[[], Any]] = None,
    ) -> Any:
        for index, rule in enumerate(self.rules):
            verdicts = await _join(_settle(evaluate(flt)) for flt in rule.filters)
            verdicts = [verdict for verdict in verdicts if verdict is not None]
            if verdicts and all(verdicts):
                logger.debug("rule #%d matched", index)
                return await _settle(on_match(rule))
        if on_no_match is None:
            return None
        return await _settle(on_no_match())


def interleave(lists: Iterable[Sequence[T]]) -> List[T]:
    """Round-robin merge keeping each list's order.

    >>> interleave([[1, 2, 3], [4, 5], [6, 7, 8]])
    [1, 4, 6, 2, 5, 7, 3, 8]
    """
    lists = list(lists)
    interleaved: List[T] = []
    length = max((len(items) for items in lists), default=0)
    for index in range(length):
        for items in lists:
            if index < len(items):
                interleaved.append(items[index])
    return interleaved


async def create_mapping(
    keys: Sequence[K], fetch: Callable[[K], Awaitable[T]]
) -> Dict[K, T]:
    """Await ``fetch`` for every key concurrently; the dict follows ``keys`` order."""
    values = await _join(fetch(key) for key in keys)
    return dict(zip(keys, values))


async def _join(awaitables: Iterable[Awaitable[T]]) -> List[T]:
    tasks = [asyncio.ensure_future(awaitable) for awaitable in awaitables]
    if not tasks:
        return []
    try:
        return list(await asyncio.gather(*tasks))
    except BaseException:
        for task in tasks:
            task.cancel()
        raise


async def _settle(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


def _coerce(model: type, options: Any) -> Any:
    if options is None or isinstance(options, model):
        return options
    return model.model_validate(options)
