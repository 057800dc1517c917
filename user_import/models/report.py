from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

"""Report artifact and result cache entry models."""

__all__ = [
    "ReportArtifact",
    "ResultCacheEntry",
]


@dataclass(frozen=True)
class ReportArtifact:
    """Encoded results workbook held until its owner downloads it."""
    content: bytes
    owner_id: str | int
    created_at: datetime  # UTC


@dataclass(frozen=True)
class ResultCacheEntry:
    id: str  # 32 lowercase hex chars
    artifact: ReportArtifact

    def is_expired(self, now: datetime, ttl_seconds: float) -> bool:
        return (now - self.artifact.created_at).total_seconds() > ttl_seconds
