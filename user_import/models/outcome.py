from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from .user_record import UserRecord

"""Per-record provisioning outcome models."""

__all__ = [
    "ProvisionStatus",
    "ProvisionOutcome",
    "DUPLICATE_ACCOUNT_MESSAGE",
]

DUPLICATE_ACCOUNT_MESSAGE = "Admin user already exists"


class ProvisionStatus(Enum):
    """Result kind of a single provisioning attempt.

    - SUCCESS: account created, invitation link issued
    - DUPLICATE_ACCOUNT: email already taken (backend or earlier row in the batch)
    - PROVISION_ERROR: any other backend failure
    """
    SUCCESS = "success"
    DUPLICATE_ACCOUNT = "duplicate_account"
    PROVISION_ERROR = "provision_error"

    @property
    def error_type(self) -> str:
        """UPPER_SNAKE label used in the structured error log."""
        return self.name


@dataclass(frozen=True)
class ProvisionOutcome:
    record: UserRecord
    status: ProvisionStatus
    row_number: int  # sheet row of the source record (first data row = 2)
    invitation_link: str | None = None  # SUCCESS only
    message: str | None = None  # non-SUCCESS only

    @property
    def ok(self) -> bool:
        return self.status is ProvisionStatus.SUCCESS

    @classmethod
    def success(cls, record: UserRecord, row_number: int, invitation_link: str) -> ProvisionOutcome:
        return cls(record, ProvisionStatus.SUCCESS, row_number, invitation_link=invitation_link)

    @classmethod
    def duplicate(cls, record: UserRecord, row_number: int) -> ProvisionOutcome:
        return cls(record, ProvisionStatus.DUPLICATE_ACCOUNT, row_number, message=DUPLICATE_ACCOUNT_MESSAGE)

    @classmethod
    def failure(cls, record: UserRecord, row_number: int, message: str) -> ProvisionOutcome:
        return cls(record, ProvisionStatus.PROVISION_ERROR, row_number, message=message)
