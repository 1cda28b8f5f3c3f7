"""
uniqid.registry
===============

Readers for the on-chain leaf -> identifier registry.

- `EthRegistryReader`: JSON-RPC `eth_call` to `rootToId(bytes32)` (httpx, retries)
- `InMemoryRegistry`: append-only in-process registry (tests, dry runs)

Both resolve a leaf to an `Identifier` or the `UNREGISTERED` sentinel.
"""

from __future__ import annotations

from ..types import UNREGISTERED, Unregistered
from .abi import ROOT_TO_ID_SELECTOR, decode_uint256, encode_root_to_id
from .client import EthRegistryReader, RegistryConfig
from .memory import InMemoryRegistry

__all__ = [
    "UNREGISTERED",
    "Unregistered",
    "ROOT_TO_ID_SELECTOR",
    "encode_root_to_id",
    "decode_uint256",
    "EthRegistryReader",
    "RegistryConfig",
    "InMemoryRegistry",
]
