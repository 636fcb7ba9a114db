"""Core runtime aggregator (source of truth).

Purpose: expose the routing building blocks from a single module. No extra
logic beyond imports/exports.

Guarantees
----------
- Importing this module performs only imports; it does not register filter
  factories or build routers.
- Public API mirrors underlying modules 1:1:
  * ``models`` → registry data shapes and ``extension_id``
  * ``client`` → ``RegistryClient`` contract and providers
  * ``config`` → ``RouterConfig`` / ``RouterRule``
  * ``rules`` → ``ParsedRule``, ``parse_rules``, ``parse_use`` and errors
  * ``router_client`` → ``RouterClient``, ``interleave``, ``create_mapping``
"""

from .client import ClientProvider, RegistryClient, memoized_provider
from .config import RouterConfig, RouterRule
from .models import (
    ExtensionLike,
    ExtensionRaw,
    QueryOptions,
    QueryResult,
    SearchEntry,
    SearchOptions,
    SearchResult,
    extension_id,
)
from .router_client import RouterClient, create_mapping, interleave
from .rules import (
    DuplicateConditionClaimError,
    ParsedRule,
    RouterConfigError,
    UnknownConditionsError,
    parse_rules,
    parse_use,
)

__all__ = [
    "ClientProvider",
    "RegistryClient",
    "memoized_provider",
    "RouterConfig",
    "RouterRule",
    "ExtensionLike",
    "ExtensionRaw",
    "QueryOptions",
    "QueryResult",
    "SearchEntry",
    "SearchOptions",
    "SearchResult",
    "extension_id",
    "RouterClient",
    "create_mapping",
    "interleave",
    "DuplicateConditionClaimError",
    "ParsedRule",
    "RouterConfigError",
    "UnknownConditionsError",
    "parse_rules",
    "parse_use",
]
