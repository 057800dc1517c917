from __future__ import annotations

import logging
import re
import secrets
import threading
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from ..models.report import ReportArtifact, ResultCacheEntry

"""Result cache for generated report workbooks.

Entries are keyed by an unguessable 32-char hex id, owned by the principal
that ran the import, readable exactly once by that owner, and dropped after
``ttl_seconds``. All state sits behind one lock; ``redeem`` performs its
read-then-delete inside a single critical section.

Expired entries are swept at every ``store``/``redeem``. An entry older than
the TTL is never returned even if no sweep has run yet.
"""

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "RESULT_ID_BYTES",
    "RESULT_ID_PATTERN",
    "ResultCacheError",
    "NotFoundError",
    "ForbiddenError",
    "ResultCache",
    "is_valid_result_id",
]

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60 * 60
RESULT_ID_BYTES = 16
RESULT_ID_PATTERN = re.compile(rf"^[a-f0-9]{{{RESULT_ID_BYTES * 2}}}$")


class ResultCacheError(Exception):
    pass


class NotFoundError(ResultCacheError):
    """No live entry for the id (never stored, already redeemed, or expired)."""


class ForbiddenError(ResultCacheError):
    """The entry exists but belongs to another principal."""


def is_valid_result_id(value: Any) -> bool:
    return isinstance(value, str) and RESULT_ID_PATTERN.fullmatch(value) is not None


def _utcnow() -> datetime:
    return datetime.now(UTC)


class ResultCache:
    """Single-owner, read-once, expiring store for report artifacts.

    Construct one per application and close it on shutdown; there is no
    process-wide instance.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, ResultCacheEntry] = {}

    def store(self, content: bytes, owner_id: str | int) -> str:
        with self._lock:
            now = self._clock()
            self._sweep_locked(now)
            result_id = secrets.token_hex(RESULT_ID_BYTES)
            while result_id in self._entries:
                result_id = secrets.token_hex(RESULT_ID_BYTES)
            artifact = ReportArtifact(content=content, owner_id=owner_id, created_at=now)
            self._entries[result_id] = ResultCacheEntry(id=result_id, artifact=artifact)
        logger.debug(f"stored import result {result_id} ({len(content)} bytes)")
        return result_id

    def redeem(self, result_id: str, requester_id: str | int) -> bytes:
        with self._lock:
            now = self._clock()
            self._sweep_locked(now)
            entry = self._entries.get(result_id)
            if entry is None:
                raise NotFoundError("Results not found or expired")
            if entry.artifact.owner_id != requester_id:
                raise ForbiddenError("You do not have permission to access this result")
            del self._entries[result_id]
        logger.debug(f"redeemed import result {result_id}")
        return entry.artifact.content

    def sweep(self, now: datetime | None = None) -> int:
        """Remove expired entries; returns how many were dropped."""
        with self._lock:
            return self._sweep_locked(now if now is not None else self._clock())

    def _sweep_locked(self, now: datetime) -> int:
        expired = [k for k, e in self._entries.items() if e.is_expired(now, self.ttl_seconds)]
        for key in expired:
            del self._entries[key]
        if expired:
            logger.debug(f"swept {len(expired)} expired import results")
        return len(expired)

    def clear(self) -> None:
        with self._lock:
            count = len(self._entries)
            self._entries.clear()
        if count:
            logger.info(f"cleaned up {count} import results")

    close = clear

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def __contains__(self, result_id: object) -> bool:
        with self._lock:
            return result_id in self._entries

    def __enter__(self) -> ResultCache:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
