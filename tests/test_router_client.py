"""Routing and agglomeration through RouterClient."""

from __future__ import annotations

import asyncio
import sys

import pytest

from vsxroute import (
    QueryResult,
    RegistryClient,
    RouterClient,
    SearchResult,
    UnknownConditionsError,
)


def _ids(result):
    return [extension.id for extension in result.extensions]


async def _router(config, provider, **kwargs) -> RouterClient:
    return await RouterClient.from_config(config, provider, **kwargs)


def _calls(client, kind):
    return [call for call in client.calls if call[0] == kind]


@pytest.mark.asyncio
async def test_query_agglomerates_registries_in_declared_order(router_config, provider):
    router = await _router(router_config, provider)

    result = await router.query({"namespaceName": "other"})

    assert _ids(result) == ["other.d", "other.e"]
    assert result.offset == 0
    assert result.total_size == 2


@pytest.mark.asyncio
async def test_search_without_options_interleaves_default_registries(
    router_config, provider, registries, uris
):
    router = await _router(router_config, provider)

    result = await router.search()

    # internal: some.a, other.d, secret.x / public (some.b dropped): other.e, public.y
    assert _ids(result) == ["some.a", "other.e", "other.d", "public.y", "secret.x"]
    assert result.offset == 0
    assert _calls(registries[uris["third"]], "search") == []


@pytest.mark.asyncio
async def test_extension_rule_drops_disallowed_source(router_config, provider, registries, uris):
    router = await _router(router_config, provider)

    result = await router.search({"query": "some"})

    assert _ids(result) == ["some.a"]
    # public was still asked: the rule restricts extensions, not requests
    assert len(_calls(registries[uris["public"]], "search")) == 1


@pytest.mark.asyncio
async def test_request_rule_targets_single_registry(router_config, provider, registries, uris):
    router = await _router(router_config, provider)

    result = await router.search({"query": "secret"})

    assert _ids(result) == ["secret.x"]
    assert len(_calls(registries[uris["internal"]], "search")) == 1
    assert _calls(registries[uris["public"]], "search") == []


@pytest.mark.asyncio
async def test_request_rule_routes_to_non_default_registry(router_config, provider, registries, uris):
    router = await _router(router_config, provider)

    result = await router.search({"query": "third"})

    assert _ids(result) == ["third.z"]
    assert _calls(registries[uris["internal"]], "search") == []


@pytest.mark.asyncio
async def test_drop_rule_returns_empty_search_without_calls(router_config, provider, registries):
    router = await _router(router_config, provider)

    result = await router.search({"query": "testFullStop", "offset": 5})

    assert result == SearchResult(offset=5, extensions=[])
    assert all(client.calls == [] for client in registries.values())


@pytest.mark.asyncio
async def test_drop_rule_returns_empty_query_without_calls(router_config, provider, registries):
    router = await _router(router_config, provider)

    result = await router.query({"extensionName": "testFullStop"})

    assert result == QueryResult(offset=0, total_size=0, extensions=[])
    assert all(client.calls == [] for client in registries.values())


@pytest.mark.asyncio
async def test_empty_use_list_drops_like_null(router_config, provider, registries):
    router_config["rules"] = [{"ifRequestContains": "blocked", "use": []}]
    router = await _router(router_config, provider)

    result = await router.search({"query": "blocked"})

    assert result.extensions == []
    assert all(client.calls == [] for client in registries.values())


@pytest.mark.asyncio
async def test_unmatched_request_uses_default_set(router_config, provider, registries, uris):
    router = await _router(router_config, provider)

    await router.query({"extensionId": "public.y"})

    assert len(_calls(registries[uris["internal"]], "query")) == 1
    assert len(_calls(registries[uris["public"]], "query")) == 1
    assert _calls(registries[uris["third"]], "query") == []


@pytest.mark.asyncio
async def test_first_matching_rule_wins(router_config, provider, registries, uris):
    router_config["rules"] = [
        {"ifRequestContains": "shared", "use": "public"},
        {"ifRequestContains": "shared", "use": "internal"},
    ]
    router = await _router(router_config, provider)

    await router.search({"query": "shared"})

    assert len(_calls(registries[uris["public"]], "search")) == 1
    assert _calls(registries[uris["internal"]], "search") == []


@pytest.mark.asyncio
async def test_literal_uri_in_use_passes_through(router_config, provider, registries, uris):
    router_config["use"] = uris["third"]
    router_config["rules"] = []
    router = await _router(router_config, provider)

    result = await router.search()

    assert router.use_default == (uris["third"],)
    assert _ids(result) == ["third.z"]


@pytest.mark.asyncio
async def test_repeated_requests_are_identical(router_config, provider, registries, uris):
    router = await _router(router_config, provider)

    first = await router.search()
    second = await router.search()

    assert first == second
    # no caching: every request reaches the backends again
    assert len(_calls(registries[uris["internal"]], "search")) == 2


@pytest.mark.asyncio
async def test_search_offset_is_minimum_of_registries(router_config, registries, uris):
    class OffsetClient(RegistryClient):
        def __init__(self, offset):
            self.offset = offset

        async def search(self, options=None):
            return SearchResult(offset=self.offset, extensions=[])

    clients = {uris["internal"]: OffsetClient(7), uris["public"]: OffsetClient(3)}
    router = await _router(router_config, clients.__getitem__)

    result = await router.search({"query": "anything"})

    assert result.offset == 3


@pytest.mark.asyncio
async def test_unknown_condition_rejects_construction(router_config, provider):
    router_config["rules"].append({"ifMoonIsFull": True, "use": "public"})

    with pytest.raises(UnknownConditionsError, match="ifMoonIsFull"):
        await _router(router_config, provider)


@pytest.mark.asyncio
async def test_async_provider_is_awaited(router_config, registries):
    async def provide(uri):
        await asyncio.sleep(0)
        return registries[uri]

    router = await _router(router_config, provide)

    result = await router.query({"namespaceName": "other"})

    assert _ids(result) == ["other.d", "other.e"]


@pytest.mark.asyncio
async def test_routers_compose(router_config, provider, uris):
    inner = await _router(router_config, provider)
    outer = await RouterClient.from_config(
        {"registries": {"inner": "router://inner"}, "use": "inner"},
        lambda uri: inner,
    )

    result = await outer.query({"namespaceName": "other"})

    assert _ids(result) == ["other.d", "other.e"]


@pytest.mark.asyncio
async def test_empty_default_set_returns_empty_result(provider, registries):
    router = RouterClient([], provider, [])

    assert await router.search() == SearchResult(offset=0, extensions=[])
    assert await router.query() == QueryResult(offset=0, total_size=0, extensions=[])
    assert all(client.calls == [] for client in registries.values())


@pytest.mark.asyncio
async def test_operation_returns_bound_coroutines(router_config, provider):
    router = await _router(router_config, provider)

    search = router.operation("search")
    result = await search({"query": "secret"})

    assert _ids(result) == ["secret.x"]
    with pytest.raises(NotImplementedError):
        router.operation("install")


@pytest.mark.asyncio
async def test_operation_with_smartasync(monkeypatch, router_config, provider):
    calls = {}

    def fake_smartasync(fn):
        calls["wrapped"] = fn

        def wrapper(*args, **kwargs):
            calls["called"] = True
            return fn(*args, **kwargs)

        return wrapper

    fake_module = type(sys)("smartasync")
    fake_module.smartasync = fake_smartasync
    monkeypatch.setitem(sys.modules, "smartasync", fake_module)

    router = await _router(router_config, provider, use_smartasync=True)
    handler = router.operation("query")
    result = await handler({"namespaceName": "other"})

    assert calls["called"] is True
    assert calls["wrapped"] == router.query
    assert result.total_size == 2

    plain = router.operation("query", use_smartasync=False)
    assert plain == router.query
