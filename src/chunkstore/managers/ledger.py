"""Quota ledger: remaining byte budget per open upload session, with expiry."""
from __future__ import annotations
from abc import abstractmethod
from dataclasses import dataclass
from enum import StrEnum
from threading import Lock
from time import monotonic
from typing import TYPE_CHECKING, Callable, Dict

from chunkstore.component import ApiManager
from chunkstore.exceptions import ChunkTooLargeError, SessionNotOpenError

if TYPE_CHECKING:
    from chunkstore.api import Api


class SessionState(StrEnum):
    """Ledger view of an upload session.

    EXPIRED also covers keys that were never opened."""
    OPEN = "open"
    FINALIZED = "finalized"
    EXPIRED = "expired"


@dataclass(frozen=True)
class LedgerStatus:
    state: SessionState
    remaining: int | None = None


def session_not_open(key: str, state: SessionState) -> SessionNotOpenError:
    if state == SessionState.FINALIZED:
        return SessionNotOpenError("Data is already saved.")
    return SessionNotOpenError(f"Upload session for {key} has expired or was never opened.")


def chunk_too_large(remaining: int, length: int) -> ChunkTooLargeError:
    return ChunkTooLargeError(
        "Chunk exceeds max storage quota for this resource "
        f"(pending={remaining}, length={length})"
    )


class LedgerManager(ApiManager):
    """Key -> remaining bytes store. Entries expire after their ttl.

    Closing an entry (complete/abort) leaves a tombstone for `tombstone_ttl` seconds,
    so that late chunks are told the session is finalized rather than expired.
    No transactional link with the object store is assumed.
    """
    def __init__(self, app: Api, tombstone_ttl: int) -> None:
        super().__init__(app=app)
        self.tombstone_ttl = tombstone_ttl

    @abstractmethod
    async def open(self, key: str, budget: int, ttl: int) -> None:
        """Create or reset entry `key` with `budget` bytes, expiring in `ttl` seconds."""
        raise NotImplementedError

    @abstractmethod
    async def consume(self, key: str, nbytes: int) -> int:
        """Atomically take `nbytes` off the budget of `key`. Entry is left untouched on failure.

        :raises SessionNotOpenError: no open entry for key
        :raises ChunkTooLargeError: budget would go negative
        :return: remaining bytes
        """
        raise NotImplementedError

    @abstractmethod
    async def refund(self, key: str, nbytes: int) -> None:
        """Give back bytes taken by a chunk the store did not accept. No-op if not open."""
        raise NotImplementedError

    @abstractmethod
    async def status(self, key: str) -> LedgerStatus:
        raise NotImplementedError

    @abstractmethod
    async def finalize(self, key: str) -> bool:
        """Remove entry and leave a tombstone. Returns whether an open entry was removed."""
        raise NotImplementedError

    @abstractmethod
    async def discard(self, key: str) -> None:
        """Forget everything about key, tombstone included."""
        raise NotImplementedError


@dataclass
class _Entry:
    remaining: int
    budget: int
    expires_at: float
    finalized: bool = False


class MemoryLedgerManager(LedgerManager):
    """In process ledger. A single lock makes check-and-decrement atomic."""
    def __init__(
        self,
        app: Api,
        tombstone_ttl: int,
        clock: Callable[[], float] = monotonic
    ) -> None:
        super().__init__(app=app, tombstone_ttl=tombstone_ttl)
        self.clock = clock
        self._lock = Lock()
        self._entries: Dict[str, _Entry] = {}

    @property
    def endpoint(self) -> str:
        return "memory://"

    def _live(self, key: str) -> _Entry | None:
        """Entry for key, purging it if expired. Call with lock held."""
        entry = self._entries.get(key)
        if entry and entry.expires_at <= self.clock():
            del self._entries[key]
            return None
        return entry

    @staticmethod
    def _state(entry: _Entry | None) -> SessionState:
        if entry is None:
            return SessionState.EXPIRED
        return SessionState.FINALIZED if entry.finalized else SessionState.OPEN

    async def open(self, key: str, budget: int, ttl: int) -> None:
        with self._lock:
            self._entries[key] = _Entry(
                remaining=budget, budget=budget, expires_at=self.clock() + ttl
            )

    async def consume(self, key: str, nbytes: int) -> int:
        with self._lock:
            entry = self._live(key)
            state = self._state(entry)
            if state != SessionState.OPEN:
                raise session_not_open(key, state)

            left = entry.remaining - nbytes
            if left < 0:
                raise chunk_too_large(entry.remaining, nbytes)
            entry.remaining = left
            return left

    async def refund(self, key: str, nbytes: int) -> None:
        with self._lock:
            entry = self._live(key)
            if self._state(entry) == SessionState.OPEN:
                entry.remaining = min(entry.budget, entry.remaining + nbytes)

    async def status(self, key: str) -> LedgerStatus:
        with self._lock:
            entry = self._live(key)
            state = self._state(entry)
            return LedgerStatus(
                state=state,
                remaining=entry.remaining if state == SessionState.OPEN else None
            )

    async def finalize(self, key: str) -> bool:
        with self._lock:
            was_open = self._state(self._live(key)) == SessionState.OPEN
            self._entries[key] = _Entry(
                remaining=0,
                budget=0,
                expires_at=self.clock() + self.tombstone_ttl,
                finalized=True
            )
            return was_open

    async def discard(self, key: str) -> None:
        with self._lock:
            self._entries.pop(key, None)
