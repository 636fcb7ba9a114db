"""vsxroute public API surface (source of truth).

Recreate the module with these rules:
- Public exports: ``RouterClient``, ``RouterConfig``, ``RegistryClient``, the
  registry data models, the filter contract helpers and the configuration
  errors.
- Filter registration: import built-in filters (``request_contains``,
  ``extension_id``) for their side effect of calling
  ``register_filter_factory(<factory>)``. Imports are done via
  ``import_module`` to avoid cycles.

Constraints
-----------
- Import must stay lightweight: no router instantiation or network access
  beyond factory registration.
- Version string lives here as ``__version__`` and must remain available for
  packaging tools.
"""

from importlib import import_module

__version__ = "0.3.0"

from .core import (
    DuplicateConditionClaimError,
    ExtensionLike,
    ExtensionRaw,
    QueryOptions,
    QueryResult,
    RegistryClient,
    RouterClient,
    RouterConfig,
    RouterConfigError,
    SearchEntry,
    SearchOptions,
    SearchResult,
    UnknownConditionsError,
    extension_id,
    memoized_provider,
)
from .filters._base_filter import (
    FilterClaim,
    FilterPhase,
    RouterFilter,
    available_filter_factories,
    create_filter_factory,
    register_filter_factory,
)

# Import filters to trigger auto-registration (lazy to avoid cycles)
for _filter in ("request_contains", "extension_id"):
    import_module(f"{__name__}.filters.{_filter}")
del _filter

__all__ = [
    "RouterClient",
    "RouterConfig",
    "RegistryClient",
    "memoized_provider",
    "ExtensionLike",
    "ExtensionRaw",
    "SearchEntry",
    "SearchOptions",
    "SearchResult",
    "QueryOptions",
    "QueryResult",
    "extension_id",
    "FilterClaim",
    "FilterPhase",
    "RouterFilter",
    "available_filter_factories",
    "create_filter_factory",
    "register_filter_factory",
    "RouterConfigError",
    "UnknownConditionsError",
    "DuplicateConditionClaimError",
]
