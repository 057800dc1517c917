"""Domain models for the batch admin-user import.

Plain frozen dataclasses shared by the parser, the provisioning engine, the
result cache and the import service.
"""

from .account import NewAccount, Role
from .error_record import ErrorRecord
from .import_response import ImportFailure, ImportResponse
from .outcome import DUPLICATE_ACCOUNT_MESSAGE, ProvisionOutcome, ProvisionStatus
from .report import ReportArtifact, ResultCacheEntry
from .user_record import UserRecord

__all__ = [
    # Backend payloads
    "NewAccount",
    "Role",
    # Pipeline models
    "UserRecord",
    "ProvisionOutcome",
    "ProvisionStatus",
    "DUPLICATE_ACCOUNT_MESSAGE",
    # Results
    "ReportArtifact",
    "ResultCacheEntry",
    "ImportFailure",
    "ImportResponse",
    "ErrorRecord",
]
