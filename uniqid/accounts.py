"""
Site-local account store and the signup / login flows built on verdicts.

The store is a flat JSON array (``uniqid_users.json``)::

    [{"identifier": "42", "displayId": "UNIQ-000042",
      "displayName": "alice", "createdAt": "2024-05-01T12:00:00+00:00"}]

keyed on the identifier's canonical decimal value. Registration is
serialized per identifier, so concurrent signups for the same identifier
produce exactly one account and `AlreadyRegistered` for every other one.
Writes go to a temp file that replaces the store atomically.
"""

from __future__ import annotations

import asyncio
import json
import os
import tempfile
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, AsyncIterator, Dict, List, Mapping, Optional, Union

from .config import Settings, get_settings
from .errors import AccountNotFound, AlreadyRegistered, InvalidInput, UniqIdError
from .identifiers import Identifier
from .logging import get_logger
from .orchestrator import VerificationOrchestrator
from .types import Accepted, Rejected, VerificationRequest

log = get_logger(__name__)

MAX_DISPLAY_NAME = 64


@dataclass(frozen=True)
class Account:
    identifier: str  # canonical decimal
    display_id: str
    display_name: str
    created_at: str

    def to_dict(self) -> Dict[str, str]:
        return {
            "identifier": self.identifier,
            "displayId": self.display_id,
            "displayName": self.display_name,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, obj: Mapping[str, Any]) -> "Account":
        return cls(
            identifier=str(obj["identifier"]),
            display_id=str(obj.get("displayId", "")),
            display_name=str(obj.get("displayName", "")),
            created_at=str(obj.get("createdAt", "")),
        )


def _key(identifier: Union[Identifier, int, str]) -> str:
    if isinstance(identifier, Identifier):
        return identifier.decimal
    return str(int(identifier))


class JsonAccountStore:
    def __init__(self, path: Union[str, os.PathLike]):
        self.path = Path(path)
        self._id_locks: Dict[str, asyncio.Lock] = {}
        self._id_users: Dict[str, int] = {}
        self._file_lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "JsonAccountStore":
        return cls((settings or get_settings()).accounts_path)

    # ---------- file I/O (runs in a worker thread) ----------

    def _read(self) -> List[Dict[str, Any]]:
        if not self.path.exists():
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._write([])
            log.info("accounts.created", path=str(self.path))
            return []
        text = self.path.read_text(encoding="utf-8")
        data = json.loads(text or "[]")
        if not isinstance(data, list):
            raise ValueError(f"{self.path} must contain a JSON array")
        return data

    def _write(self, rows: List[Dict[str, Any]]) -> None:
        fd, tmp = tempfile.mkstemp(prefix=".accounts-", suffix=".json", dir=self.path.parent)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(rows, f, indent=2)
                f.write("\n")
            os.replace(tmp, self.path)
        except BaseException:
            os.unlink(tmp)
            raise

    async def _load(self) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._read)

    @asynccontextmanager
    async def _locked(self, key: str) -> AsyncIterator[None]:
        """Hold the lock for one identifier; it is dropped once no task holds or awaits it."""
        lock = self._id_locks.setdefault(key, asyncio.Lock())
        self._id_users[key] = self._id_users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._id_users[key] -= 1
            if self._id_users[key] == 0:
                del self._id_users[key]
                del self._id_locks[key]

    # ---------- queries / mutations ----------

    async def all(self) -> List[Account]:
        async with self._file_lock:
            rows = await self._load()
        return [Account.from_dict(r) for r in rows]

    async def find_by_identifier(self, identifier: Union[Identifier, int, str]) -> Optional[Account]:
        key = _key(identifier)
        async with self._file_lock:
            rows = await self._load()
        for row in rows:
            if str(row.get("identifier")) == key:
                return Account.from_dict(row)
        return None

    async def add_account(self, identifier: Identifier, display_name: str) -> Account:
        """Create the account for `identifier`; raises AlreadyRegistered if one exists."""
        key = identifier.decimal
        async with self._locked(key):
            if await self.find_by_identifier(identifier) is not None:
                raise AlreadyRegistered(
                    "identifier already has an account on this site",
                    details={"identifier": identifier.to_dict()},
                )
            account = Account(
                identifier=key,
                display_id=identifier.display,
                display_name=display_name,
                created_at=datetime.now(timezone.utc).isoformat(),
            )
            async with self._file_lock:
                rows = await self._load()
                rows.append(account.to_dict())
                await asyncio.to_thread(self._write, rows)
        log.info("accounts.added", identifier=key)
        return account

    async def delete_account(self, identifier: Union[Identifier, int, str]) -> bool:
        key = _key(identifier)
        async with self._locked(key):
            async with self._file_lock:
                rows = await self._load()
                kept = [r for r in rows if str(r.get("identifier")) != key]
                if len(kept) == len(rows):
                    return False
                await asyncio.to_thread(self._write, kept)
        log.info("accounts.deleted", identifier=key)
        return True


# -----------------------------------------------------------------------------
# Enrollment flows
# -----------------------------------------------------------------------------


class EnrollmentError(Exception):
    """A signup or login did not go through; `verdict` says why."""

    def __init__(self, verdict: Rejected):
        super().__init__(verdict.message or verdict.reason.value)
        self.verdict = verdict

    @property
    def reason(self):
        return self.verdict.reason

    @classmethod
    def from_error(cls, err: UniqIdError) -> "EnrollmentError":
        return cls(Rejected(reason=err.kind, message=err.message, detail=dict(err.details)))


class Enrollment:
    def __init__(self, orchestrator: VerificationOrchestrator, store: JsonAccountStore):
        self.orchestrator = orchestrator
        self.store = store

    async def _accepted(self, request: Union[VerificationRequest, Mapping[str, Any]]) -> Accepted:
        verdict = await self.orchestrator.verify(request)
        if isinstance(verdict, Rejected):
            raise EnrollmentError(verdict)
        return verdict

    async def signup(
        self, request: Union[VerificationRequest, Mapping[str, Any]], display_name: str
    ) -> Account:
        name = (display_name or "").strip()
        try:
            if not name or len(name) > MAX_DISPLAY_NAME:
                raise InvalidInput(
                    f"display name must be 1..{MAX_DISPLAY_NAME} characters",
                    details={"field": "displayName"},
                )
            verdict = await self._accepted(request)
            return await self.store.add_account(verdict.identifier, name)
        except UniqIdError as e:
            raise EnrollmentError.from_error(e) from e

    async def login(self, request: Union[VerificationRequest, Mapping[str, Any]]) -> Account:
        try:
            if not isinstance(request, VerificationRequest):
                request = VerificationRequest.from_mapping(request)
            claimed = self.orchestrator.codec.parse(request.claimed_identifier)
            account = await self.store.find_by_identifier(claimed)
            if account is None:
                raise AccountNotFound(
                    "identifier has no account on this site; sign up first",
                    details={"identifier": claimed.to_dict()},
                )
            await self._accepted(request)
            return account
        except UniqIdError as e:
            raise EnrollmentError.from_error(e) from e


__all__ = ["Account", "JsonAccountStore", "EnrollmentError", "Enrollment"]
