"""Shared fixtures: an in-memory registry and a three-registry router config."""

from __future__ import annotations

import copy
from typing import Dict, List, Optional

import pytest

from vsxroute import (
    ExtensionRaw,
    QueryOptions,
    QueryResult,
    RegistryClient,
    SearchEntry,
    SearchOptions,
    SearchResult,
)

INTERNAL = "https://internal.registry.test"
PUBLIC = "https://public.registry.test"
THIRD = "https://third.registry.test"

REGISTRY_DATA = {
    INTERNAL: ["some.a", "other.d", "secret.x"],
    PUBLIC: ["some.b", "other.e", "public.y"],
    THIRD: ["third.z"],
}

ROUTER_CONFIG = {
    "registries": {"internal": INTERNAL, "public": PUBLIC, "third": THIRD},
    "use": ["internal", "public"],
    "rules": [
        {"ifRequestContains": r"\btestFullStop\b", "use": None},
        {"ifRequestContains": r"\bsecret\b", "use": "internal"},
        {"ifRequestContains": r"\bthird\b", "use": "third"},
        {"ifExtensionIdMatches": r"^some\.", "use": "internal"},
    ],
}


class MockRegistryClient(RegistryClient):
    """Serves a fixed list of extension ids and records every call."""

    def __init__(self, ids: List[str]):
        self.ids = list(ids)
        self.calls: List[tuple] = []

    def _entries(self):
        for ident in self.ids:
            namespace, name = ident.split(".", 1)
            yield namespace, name

    async def search(self, options: Optional[SearchOptions] = None) -> SearchResult:
        self.calls.append(("search", options))
        text = (options.query or "") if options else ""
        offset = (options.offset or 0) if options else 0
        matches = [
            SearchEntry(namespace=namespace, name=name, version="1.0.0")
            for namespace, name in self._entries()
            if text.lower() in f"{namespace}.{name}".lower()
        ]
        return SearchResult(offset=offset, extensions=matches[offset:])

    async def query(self, options: Optional[QueryOptions] = None) -> QueryResult:
        self.calls.append(("query", options))
        options = options or QueryOptions()
        found = []
        for namespace, name in self._entries():
            if options.namespace_name and options.namespace_name != namespace:
                continue
            if options.extension_name and options.extension_name != name:
                continue
            if options.extension_id and options.extension_id != f"{namespace}.{name}":
                continue
            found.append(ExtensionRaw(namespace=namespace, name=name, version="1.0.0"))
        return QueryResult(offset=0, total_size=len(found), extensions=found)


@pytest.fixture
def uris() -> Dict[str, str]:
    return dict(ROUTER_CONFIG["registries"])


@pytest.fixture
def router_config() -> dict:
    return copy.deepcopy(ROUTER_CONFIG)


@pytest.fixture
def registries() -> Dict[str, MockRegistryClient]:
    return {uri: MockRegistryClient(ids) for uri, ids in REGISTRY_DATA.items()}


@pytest.fixture
def provider(registries):
    def provide(uri: str) -> RegistryClient:
        return registries[uri]

    return provide
