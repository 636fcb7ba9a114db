"""
Example showing how to route registry requests across several backends.
"""

from __future__ import annotations

import asyncio

from vsxroute import (
    ExtensionRaw,
    QueryResult,
    RegistryClient,
    RouterClient,
    SearchEntry,
    SearchResult,
    memoized_provider,
)
from vsxroute.clients import logged_provider

CATALOG = {
    "https://vsx.internal.example": ["acme.linter", "acme.theme"],
    "https://open-vsx.org": ["acme.theme", "redhat.java", "ms-python.python"],
}

ROUTER_CONFIG = {
    "registries": {"internal": "https://vsx.internal.example", "public": "https://open-vsx.org"},
    "use": ["internal", "public"],
    "rules": [
        {"ifRequestContains": r"\bconfidential\b", "use": None},
        {"ifExtensionIdMatches": r"^acme\.", "use": "internal"},
    ],
}


class StaticRegistry(RegistryClient):
    def __init__(self, ids):
        self.ids = ids

    async def search(self, options=None):
        text = options.query if options and options.query else ""
        return SearchResult(
            extensions=[
                SearchEntry(namespace=ident.split(".")[0], name=ident.split(".")[1])
                for ident in self.ids
                if text in ident
            ]
        )

    async def query(self, options=None):
        found = [
            ExtensionRaw(namespace=ident.split(".")[0], name=ident.split(".")[1])
            for ident in self.ids
        ]
        return QueryResult(total_size=len(found), extensions=found)


async def main():
    provider = logged_provider(memoized_provider(lambda uri: StaticRegistry(CATALOG[uri])))
    router = await RouterClient.from_config(ROUTER_CONFIG, provider)
    result = await router.search({"query": "acme"})
    print([extension.id for extension in result.extensions])
    dropped = await router.search({"query": "confidential"})
    print(dropped.extensions)


if __name__ == "__main__":
    asyncio.run(main())
