from __future__ import annotations

import json

import httpx
import pytest
import respx

from uniqid.errors import InvalidInput, RegistryUnavailable
from uniqid.identifiers import Identifier
from uniqid.registry import UNREGISTERED, EthRegistryReader, InMemoryRegistry, RegistryConfig
from uniqid.registry.abi import ROOT_TO_ID_SELECTOR
from uniqid.tests import CONTRACT, LEAF_VECTORS, RPC_URL, rpc_error, rpc_result

LEAF = LEAF_VECTORS[0]["leaf"]


def _reader(**overrides) -> EthRegistryReader:
    cfg = dict(rpc_url=RPC_URL, contract_address=CONTRACT, backoff_base_s=0.0, timeout_s=1.0)
    cfg.update(overrides)
    return EthRegistryReader(RegistryConfig(**cfg))


# ----------------------------
# EthRegistryReader (respx)
# ----------------------------
@pytest.mark.asyncio
async def test_resolve_registered_leaf() -> None:
    with respx.mock(assert_all_called=True) as router:
        route = router.post(RPC_URL).mock(return_value=httpx.Response(200, json=rpc_result(42)))
        async with _reader() as reader:
            resolved = await reader.resolve(LEAF)

    assert resolved == Identifier(42)
    body = json.loads(route.calls.last.request.content)
    assert body["method"] == "eth_call"
    call, tag = body["params"]
    assert tag == "latest"
    assert call["to"] == CONTRACT
    assert call["data"] == "0x" + ROOT_TO_ID_SELECTOR.hex() + LEAF[2:]


@pytest.mark.asyncio
async def test_zero_means_unregistered() -> None:
    with respx.mock() as router:
        router.post(RPC_URL).mock(return_value=httpx.Response(200, json=rpc_result(0)))
        async with _reader() as reader:
            assert await reader.resolve(LEAF) is UNREGISTERED


@pytest.mark.asyncio
async def test_transient_failures_are_retried() -> None:
    with respx.mock() as router:
        route = router.post(RPC_URL).mock(
            side_effect=[
                httpx.ConnectError("connection refused"),
                httpx.Response(503, text="busy"),
                httpx.Response(200, json=rpc_result(7)),
            ]
        )
        async with _reader() as reader:
            assert await reader.resolve(LEAF) == Identifier(7)
    assert route.call_count == 3


@pytest.mark.asyncio
async def test_exhausted_retries_raise_registry_unavailable() -> None:
    with respx.mock() as router:
        route = router.post(RPC_URL).mock(return_value=httpx.Response(200, json=rpc_error()))
        async with _reader(max_attempts=3) as reader:
            with pytest.raises(RegistryUnavailable) as ei:
                await reader.resolve(LEAF)
    assert route.call_count == 3
    assert ei.value.details == {"attempts": 3, "retryable": True}
    assert ei.value.retryable


@pytest.mark.parametrize(
    "body",
    [
        {"jsonrpc": "2.0", "id": 1, "result": "0x"},
        {"jsonrpc": "2.0", "id": 1, "result": "0x2a"},
        {"jsonrpc": "2.0", "id": 1, "result": "0x00_" + "0" * 59 + "2a"},
        {"jsonrpc": "2.0", "id": 1, "result": "0x" + " " * 62 + "2a"},
        {"jsonrpc": "2.0", "id": 1, "result": None},
        {"jsonrpc": "2.0", "id": 1},
        ["not", "an", "object"],
    ],
)
@pytest.mark.asyncio
async def test_malformed_response_is_unavailable_not_unregistered(body) -> None:
    with respx.mock() as router:
        route = router.post(RPC_URL).mock(return_value=httpx.Response(200, json=body))
        async with _reader(max_attempts=2) as reader:
            with pytest.raises(RegistryUnavailable):
                await reader.resolve(LEAF)
    assert route.call_count == 2


@pytest.mark.asyncio
async def test_timeout_is_unavailable() -> None:
    with respx.mock() as router:
        router.post(RPC_URL).mock(side_effect=httpx.ReadTimeout("slow"))
        async with _reader(max_attempts=1) as reader:
            with pytest.raises(RegistryUnavailable):
                await reader.resolve(LEAF)


@pytest.mark.parametrize("leaf", ["0xnothex", "0x" + "1" * 65, "", "0x" + "f" * 64])
@pytest.mark.asyncio
async def test_malformed_leaf_fails_fast(leaf: str) -> None:
    with respx.mock(assert_all_called=False) as router:
        route = router.post(RPC_URL).mock(return_value=httpx.Response(200, json=rpc_result(1)))
        async with _reader() as reader:
            with pytest.raises(InvalidInput):
                await reader.resolve(leaf)
    assert not route.called


@pytest.mark.asyncio
async def test_every_resolve_is_a_fresh_query() -> None:
    with respx.mock() as router:
        route = router.post(RPC_URL).mock(
            side_effect=[
                httpx.Response(200, json=rpc_result(0)),
                httpx.Response(200, json=rpc_result(9)),
            ]
        )
        async with _reader() as reader:
            assert await reader.resolve(LEAF) is UNREGISTERED
            assert await reader.resolve(LEAF) == Identifier(9)
    assert route.call_count == 2


def test_config_validation() -> None:
    with pytest.raises(ValueError):
        RegistryConfig(rpc_url=RPC_URL, contract_address=CONTRACT, max_attempts=0)
    with pytest.raises(ValueError):
        RegistryConfig(rpc_url=RPC_URL, contract_address=CONTRACT, timeout_s=0)


# ----------------------------
# InMemoryRegistry
# ----------------------------
@pytest.mark.asyncio
async def test_in_memory_registry_is_append_only() -> None:
    reg = InMemoryRegistry()
    first = reg.register(LEAF)
    second = reg.register(LEAF_VECTORS[1]["leaf"])
    assert (first.value, second.value) == (1, 2)
    assert reg.register(LEAF) == first
    assert len(reg) == 2
    assert await reg.resolve(LEAF) == first
    assert await reg.resolve(3) is UNREGISTERED


@pytest.mark.asyncio
async def test_in_memory_registry_fault_injection() -> None:
    reg = InMemoryRegistry([LEAF])
    reg.fail_next = 1
    with pytest.raises(RegistryUnavailable):
        await reg.resolve(LEAF)
    assert await reg.resolve(LEAF) == Identifier(1)
    assert reg.calls == 2
