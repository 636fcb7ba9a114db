"""Registry client contract and client providers.

``RegistryClient`` is the surface every backend (and the router itself)
implements. A ``ClientProvider`` turns a registry URI into a client, possibly
asynchronously; ``memoized_provider`` builds each URI's client once and lets
concurrent requests share the same in-flight construction.
"""

from __future__ import annotations

import asyncio
import inspect
from typing import Awaitable, Callable, Dict, Optional, Union

from vsxroute.core.models import QueryOptions, QueryResult, SearchOptions, SearchResult

__all__ = ["RegistryClient", "ClientProvider", "memoized_provider", "resolve_client"]


class RegistryClient:
    """Hook interface for a single registry backend."""

    async def search(
        self, options: Optional[SearchOptions] = None
    ) -> SearchResult:  # pragma: no cover - abstract
        raise NotImplementedError

    async def query(
        self, options: Optional[QueryOptions] = None
    ) -> QueryResult:  # pragma: no cover - abstract
        raise NotImplementedError


ClientProvider = Callable[[str], Union[RegistryClient, Awaitable[RegistryClient]]]


async def resolve_client(provider: ClientProvider, uri: str) -> RegistryClient:
    """Call ``provider`` and await the result when it is awaitable."""
    client = provider(uri)
    if inspect.isawaitable(client):
        client = await client
    return client


def memoized_provider(factory: ClientProvider) -> ClientProvider:
    """Wrap ``factory`` so each URI builds its client at most once.

    Construction failures are not remembered: the next call retries.
    """
    pending: Dict[str, "asyncio.Future[RegistryClient]"] = {}

    async def provide(uri: str) -> RegistryClient:
        future = pending.get(uri)
        if future is None:
            future = asyncio.ensure_future(resolve_client(factory, uri))
            pending[uri] = future
        try:
            return await asyncio.shield(future)
        except Exception:
            if pending.get(uri) is future and future.done():
                del pending[uri]
            raise

    return provide
