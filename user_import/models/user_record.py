from __future__ import annotations

from dataclasses import dataclass

"""UserRecord model.

A UserRecord is one sanitized spreadsheet row. Instances only exist for rows
whose email passed validation; a row with a missing or malformed email is a
parse failure, never a record with an empty email.
"""

__all__ = [
    "UserRecord",
]


@dataclass(frozen=True)
class UserRecord:
    email: str  # lowercase, local@domain
    firstname: str = ""  # trimmed, <= 255 chars
    lastname: str = ""  # trimmed, <= 255 chars
