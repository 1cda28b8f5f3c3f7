"""
In-process registry with the same append-only semantics as the contract:
one identifier per leaf, assigned sequentially from 1, never reassigned.
Used as a test double and for dry runs without a node.
"""

from __future__ import annotations

import asyncio
from typing import Dict, Iterable, Union

from ..errors import RegistryUnavailable
from ..field import coerce_leaf
from ..identifiers import DEFAULT_PREFIX, Identifier
from ..types import UNREGISTERED, Unregistered


class InMemoryRegistry:
    def __init__(self, leaves: Iterable[Union[int, str, bytes]] = (), *, id_prefix: str = DEFAULT_PREFIX):
        self._ids: Dict[int, int] = {}
        self._prefix = id_prefix
        # Fault injection for tests: fail the next N resolves.
        self.fail_next = 0
        self.calls = 0
        for leaf in leaves:
            self.register(leaf)

    def register(self, leaf: Union[int, str, bytes]) -> Identifier:
        """Anchor `leaf`; registering the same leaf again returns its existing id."""
        key = coerce_leaf(leaf)
        value = self._ids.get(key)
        if value is None:
            value = self._ids[key] = len(self._ids) + 1
        return Identifier(value, self._prefix)

    async def resolve(self, leaf: Union[int, str, bytes]) -> Union[Identifier, Unregistered]:
        key = coerce_leaf(leaf)
        self.calls += 1
        await asyncio.sleep(0)
        if self.fail_next > 0:
            self.fail_next -= 1
            raise RegistryUnavailable(
                "registry unavailable (injected)", details={"attempts": 1, "retryable": True}
            )
        value = self._ids.get(key, 0)
        if value == 0:
            return UNREGISTERED
        return Identifier(value, self._prefix)

    def __len__(self) -> int:
        return len(self._ids)


__all__ = ["InMemoryRegistry"]
