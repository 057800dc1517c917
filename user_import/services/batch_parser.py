from __future__ import annotations

import logging

from ..excel.codec import ParseError, decode
from ..models.user_record import UserRecord
from .validator import RowValidationError, validate_row

"""Batch parser: workbook bytes -> ImportBatch (list[UserRecord]).

All-or-nothing. Cheap checks (readable workbook, non-empty, row limit) run
before any per-row validation; the first invalid row aborts the whole parse.
"""

__all__ = [
    "MAX_USERS_PER_IMPORT",
    "FIRST_DATA_ROW",
    "BatchTooLargeError",
    "parse_batch",
]

logger = logging.getLogger(__name__)

MAX_USERS_PER_IMPORT = 100
FIRST_DATA_ROW = 2  # header is sheet row 1


class BatchTooLargeError(ParseError):
    pass


def parse_batch(content: bytes, max_users: int = MAX_USERS_PER_IMPORT) -> list[UserRecord]:
    rows = decode(content)

    if len(rows) > max_users:
        raise BatchTooLargeError(f"Import limit exceeded. Maximum {max_users} users per import")

    records: list[UserRecord] = []
    for index, raw in enumerate(rows):
        row_number = index + FIRST_DATA_ROW
        try:
            records.append(validate_row(raw))
        except RowValidationError as e:
            raise RowValidationError(e.reason, row_number=row_number) from e

    logger.debug(f"parsed {len(records)} user records")
    return records
