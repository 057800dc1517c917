from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the structured import error log.

One record per row that did not produce an account. The key set is fixed so
that downstream tooling can rely on it; see ``to_json_line``.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: uploaded filename
        row: sheet row number (first data row = 2). -1 for file-level errors
        email: email of the failing record, "" when unknown
        error_type: error classification in UPPER_SNAKE_CASE
        message: human readable reason
    """
    timestamp: str
    file: str
    row: int
    email: str
    error_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, email: str, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            email=email,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
