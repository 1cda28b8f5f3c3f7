"""
Async JSON-RPC reader for the on-chain identifier registry.

Resolves a leaf by calling the registry contract's `rootToId(bytes32)` view
through `eth_call`:

- 0 means the leaf is unregistered (`UNREGISTERED`), anything else is the
  leaf's Identifier.
- Transport errors, timeouts, non-2xx statuses, JSON-RPC error objects and
  malformed results are all `RegistryUnavailable` and are retried with
  exponential backoff up to `max_attempts` total attempts.
- A malformed leaf is `InvalidInput` and is never sent.

Nothing is cached: identifiers can be assigned between two requests.
"""

from __future__ import annotations

import asyncio
import itertools
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

import httpx

from ..errors import RegistryUnavailable
from ..field import coerce_leaf
from ..identifiers import DEFAULT_PREFIX, Identifier
from ..logging import get_logger
from ..types import UNREGISTERED, Unregistered
from .abi import decode_uint256, encode_root_to_id

log = get_logger(__name__)


class _AttemptFailed(Exception):
    """One attempt failed in a way worth retrying."""


def _build_headers(extra: Optional[Dict[str, str]] = None) -> Dict[str, str]:
    hdrs = {
        "content-type": "application/json",
        "accept": "application/json",
    }
    if extra:
        hdrs.update(extra)
    return hdrs


@dataclass
class RegistryConfig:
    rpc_url: str
    contract_address: str
    timeout_s: float = 5.0
    max_attempts: int = 3
    backoff_base_s: float = 0.25  # delay before the 2nd attempt, doubled after
    block_tag: str = "latest"
    id_prefix: str = DEFAULT_PREFIX
    headers: Optional[Dict[str, str]] = None

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.timeout_s <= 0:
            raise ValueError("timeout_s must be > 0")

    @classmethod
    def from_settings(cls, settings: Any) -> "RegistryConfig":
        if not settings.contract_address:
            raise ValueError("UNIQID_CONTRACT_ADDRESS is not configured")
        return cls(
            rpc_url=settings.rpc_url,
            contract_address=settings.contract_address,
            timeout_s=settings.rpc_timeout_s,
            max_attempts=settings.rpc_max_attempts,
            backoff_base_s=settings.rpc_backoff_base_s,
            id_prefix=settings.id_prefix,
        )


class EthRegistryReader:
    """
    Registry reader over Ethereum JSON-RPC.

    One instance (and its connection pool) is meant to be shared by all
    concurrent requests; use it as an async context manager or call
    `close()` when done. An `httpx.AsyncClient` may be injected.
    """

    def __init__(self, config: RegistryConfig, *, client: Optional[httpx.AsyncClient] = None):
        self._cfg = config
        self._client = client
        self._owns_client = client is None
        self._ids = itertools.count(1)

    @property
    def config(self) -> RegistryConfig:
        return self._cfg

    # ---------- lifecycle ----------

    async def start(self) -> None:
        if self._client is None:
            self._client = httpx.AsyncClient(
                timeout=self._cfg.timeout_s,
                headers=_build_headers(self._cfg.headers),
            )
            self._owns_client = True

    async def close(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
        self._client = None

    async def __aenter__(self) -> "EthRegistryReader":
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    # ---------- transport ----------

    async def _attempt(self, payload: Dict[str, Any]) -> Any:
        assert self._client is not None
        try:
            resp = await self._client.post(
                self._cfg.rpc_url, json=payload, timeout=self._cfg.timeout_s
            )
        except httpx.TimeoutException as e:
            raise _AttemptFailed(f"timeout after {self._cfg.timeout_s}s") from e
        except httpx.TransportError as e:
            raise _AttemptFailed(f"transport error: {e}") from e

        if resp.status_code != 200:
            raise _AttemptFailed(f"HTTP {resp.status_code}: {resp.text[:256]!r}")
        try:
            data = resp.json()
        except ValueError as e:
            raise _AttemptFailed("response is not JSON") from e
        if not isinstance(data, dict):
            raise _AttemptFailed("response is not a JSON-RPC object")

        err = data.get("error")
        if err is not None:
            if isinstance(err, dict):
                raise _AttemptFailed(
                    f"RPC error {err.get('code', -32000)}: {err.get('message', 'Unknown error')}"
                )
            raise _AttemptFailed(f"RPC error: {err!r}")
        if "result" not in data:
            raise _AttemptFailed("response has neither result nor error")
        return data["result"]

    async def _call(
        self, method: str, params: Any, decode: Optional[Callable[[Any], Any]] = None
    ) -> Any:
        """
        One JSON-RPC call with bounded retries. `decode` runs inside each
        attempt; its ValueError counts as a failed attempt. Raises
        RegistryUnavailable carrying the attempt count once all attempts fail.
        """
        if self._client is None:
            await self.start()

        payload = {"jsonrpc": "2.0", "id": next(self._ids), "method": method, "params": params}
        attempt = 0
        while True:
            attempt += 1
            try:
                result = await self._attempt(payload)
                if decode is None:
                    return result
                try:
                    return decode(result)
                except ValueError as e:
                    raise _AttemptFailed(f"malformed result: {e}") from e
            except _AttemptFailed as exc:
                if attempt >= self._cfg.max_attempts:
                    log.warning("registry.unavailable", method=method, attempts=attempt, error=str(exc))
                    raise RegistryUnavailable(
                        f"registry call failed after {attempt} attempts: {exc}",
                        details={"attempts": attempt, "retryable": True},
                    ) from exc
                delay = self._cfg.backoff_base_s * (2 ** (attempt - 1))
                log.debug("registry.retry", method=method, attempt=attempt, delay_s=delay, error=str(exc))
                await asyncio.sleep(delay)

    # ---------- registry ----------

    async def root_to_id(self, leaf: Union[int, str, bytes]) -> int:
        """Raw `rootToId(leaf)` value; 0 when unregistered."""
        call = {"to": self._cfg.contract_address, "data": encode_root_to_id(coerce_leaf(leaf))}
        return await self._call("eth_call", [call, self._cfg.block_tag], decode=decode_uint256)

    async def resolve(self, leaf: Union[int, str, bytes]) -> Union[Identifier, Unregistered]:
        raw = await self.root_to_id(leaf)
        if raw == 0:
            return UNREGISTERED
        return Identifier(raw, self._cfg.id_prefix)


__all__ = ["RegistryConfig", "EthRegistryReader"]
