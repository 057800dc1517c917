from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .outcome import ProvisionOutcome

"""Response returned to the caller of an import request."""

__all__ = [
    "ImportFailure",
    "ImportResponse",
]


@dataclass(frozen=True)
class ImportFailure:
    """Itemized failure entry ``{email, error}``."""
    email: str
    error: str

    def to_dict(self) -> dict[str, str]:
        return {"email": self.email, "error": self.error}


@dataclass(frozen=True)
class ImportResponse:
    total_processed: int
    success_count: int
    error_count: int
    errors: list[ImportFailure] = field(default_factory=list)
    result_id: str | None = None
    outcomes: list[ProvisionOutcome] = field(default_factory=list)
    elapsed_seconds: float = 0.0

    @property
    def message(self) -> str:
        return f"Successfully imported {self.success_count} users"

    @classmethod
    def from_outcomes(
        cls, outcomes: list[ProvisionOutcome], result_id: str | None, elapsed_seconds: float = 0.0
    ) -> ImportResponse:
        errors = [ImportFailure(o.record.email, o.message or "") for o in outcomes if not o.ok]
        return cls(
            total_processed=len(outcomes),
            success_count=len(outcomes) - len(errors),
            error_count=len(errors),
            errors=errors,
            result_id=result_id,
            outcomes=outcomes,
            elapsed_seconds=elapsed_seconds,
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON body shape consumed by the admin UI."""
        return {
            "success": True,
            "message": self.message,
            "totalProcessed": self.total_processed,
            "successCount": self.success_count,
            "errorCount": self.error_count,
            "errors": [e.to_dict() for e in self.errors],
            "resultId": self.result_id,
        }
