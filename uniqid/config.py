from __future__ import annotations

"""
Configuration loader for the UNIQ-ID verifier.

- Reads environment variables (optionally from `.env`) via pydantic-settings.
- Exposes a cached `get_settings()` accessor.

Environment variables (all prefixed with UNIQID_):
    RPC_URL               (str, default "http://127.0.0.1:8545") : JSON-RPC endpoint
    CONTRACT_ADDRESS      (hex, optional)         : registry contract (rootToId)
    RPC_TIMEOUT_S         (float, default 5.0)    : per-attempt timeout
    RPC_MAX_ATTEMPTS      (int, default 3)        : total attempts per resolve
    RPC_BACKOFF_BASE_S    (float, default 0.25)   : first retry delay, doubled each retry

Verifier:
    VK_PATH               (path, optional)        : snarkjs verification_key.json
    VERIFY_TIMEOUT_S      (float, default 10.0)
    VERIFY_WORKERS        (int, default cpu count)

Identifiers / flows:
    ID_PREFIX             (str, default "UNIQ")
    ACCEPT_CREDENTIALS    (bool, default True)    : allow email+secret requests
    ACCOUNTS_PATH         (path, default "./uniqid_users.json")

Logging:
    LOG_LEVEL             (str, default "INFO")
    LOG_FORMAT            ("json" | "console", default "json")
"""

import os
import re
from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")


class Settings(BaseSettings):
    # Registry
    rpc_url: str = Field("http://127.0.0.1:8545", description="JSON-RPC endpoint")
    contract_address: Optional[str] = Field(
        None, description="Registry contract exposing rootToId(bytes32)"
    )
    rpc_timeout_s: float = Field(5.0, gt=0, description="Per-attempt RPC timeout")
    rpc_max_attempts: int = Field(3, ge=1, description="Total attempts per resolve")
    rpc_backoff_base_s: float = Field(0.25, ge=0, description="First retry delay")

    # Verifier
    vk_path: Optional[Path] = Field(None, description="snarkjs verification_key.json")
    verify_timeout_s: float = Field(10.0, gt=0)
    verify_workers: int = Field(default_factory=lambda: os.cpu_count() or 1, ge=1)

    # Identifiers / flows
    id_prefix: str = Field("UNIQ", min_length=1)
    accept_credentials: bool = True
    accounts_path: Path = Path("./uniqid_users.json")

    # Logging
    log_level: str = Field("INFO", description="DEBUG, INFO, WARNING, ERROR")
    log_format: str = Field("json", description='"json" or "console"')

    model_config = SettingsConfigDict(
        env_prefix="UNIQID_", env_file=".env", case_sensitive=False, extra="ignore"
    )

    @field_validator("contract_address")
    @classmethod
    def _check_address(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return None
        v = v.strip()
        if not _ADDRESS_RE.match(v):
            raise ValueError("contract_address must be a 20-byte 0x-prefixed hex address")
        return v

    @field_validator("id_prefix")
    @classmethod
    def _check_prefix(cls, v: str) -> str:
        if not v.isalnum():
            raise ValueError("id_prefix must be alphanumeric")
        return v

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, v: str) -> str:
        v = v.upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {v!r}")
        return v

    @field_validator("log_format")
    @classmethod
    def _check_format(cls, v: str) -> str:
        v = v.lower()
        if v not in ("json", "console"):
            raise ValueError('log_format must be "json" or "console"')
        return v


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Cached settings instance (call `get_settings.cache_clear()` in tests)."""
    return Settings()


__all__ = ["Settings", "get_settings"]
