from __future__ import annotations

import re
from typing import Any

from ..excel.codec import ParseError, RawRow
from ..models.user_record import UserRecord

"""Row validator: one RawRow -> one sanitized UserRecord.

email は必須 (trim + lowercase 後に形式チェック)。firstname / lastname は
拒否せず trim + 255 文字で切り詰め、欠損時は空文字。HTML 除去は行わない
(レポートの消費者はスプレッドシートでありブラウザではない)。
"""

__all__ = [
    "EMAIL_PATTERN",
    "MAX_STRING_LENGTH",
    "RowValidationError",
    "sanitize_string",
    "validate_email",
    "validate_row",
]

MAX_STRING_LENGTH = 255
EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class RowValidationError(ParseError):
    """Raised when a row cannot become a UserRecord.

    ``row_number`` is filled in by the batch parser; the validator itself only
    knows the reason.
    """

    def __init__(self, reason: str, row_number: int | None = None) -> None:
        self.reason = reason
        self.row_number = row_number
        message = f"Row {row_number}: {reason}" if row_number is not None else reason
        super().__init__(message)


def sanitize_string(value: Any, max_length: int = MAX_STRING_LENGTH) -> str:
    if value is None or value == "":
        return ""
    return str(value).strip()[:max_length]


def validate_email(value: Any) -> str:
    if not value or not isinstance(value, str):
        raise RowValidationError("Missing or invalid email field")
    email = value.strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise RowValidationError(f"Invalid email format: {email}")
    return email


def validate_row(raw: RawRow) -> UserRecord:
    return UserRecord(
        email=validate_email(raw.get("email")),
        firstname=sanitize_string(raw.get("firstname")),
        lastname=sanitize_string(raw.get("lastname")),
    )
