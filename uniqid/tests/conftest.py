from __future__ import annotations

import os
from pathlib import Path
from typing import Iterator

import pytest

from uniqid.config import get_settings
from uniqid.hasher import derive_leaf
from uniqid.registry import InMemoryRegistry
from uniqid.tests import LEAF_VECTORS


# ----------------------------
# Environment isolation
# ----------------------------
@pytest.fixture(autouse=True)
def _isolated_settings(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Iterator[None]:
    """Drop any UNIQID_* variables from the host and run from an empty cwd (no .env)."""
    for key in list(os.environ):
        if key.upper().startswith("UNIQID_"):
            monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ----------------------------
# Registry fixtures
# ----------------------------
@pytest.fixture
def alice() -> dict:
    return LEAF_VECTORS[0]


@pytest.fixture
def registry(alice: dict) -> InMemoryRegistry:
    """Registry with 41 unrelated leaves, so alice's leaf resolves to 42."""
    reg = InMemoryRegistry()
    for i in range(1, 42):
        reg.register(i)
    reg.register(derive_leaf(alice["email"], alice["secret"]))
    return reg
