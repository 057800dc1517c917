from __future__ import annotations

import logging
import time
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from ..config.loader import ImportConfig
from ..db.base import AccountStore, RoleStore
from ..excel.codec import encode
from ..excel.template import generate_template
from ..logging.error_log import ErrorLogBuffer
from ..models.account import Role
from ..models.error_record import ErrorRecord
from ..models.import_response import ImportResponse
from ..models.outcome import ProvisionOutcome
from ..security.passwords import get_password_hash
from .batch_parser import MAX_USERS_PER_IMPORT, parse_batch
from .provisioning import ProvisioningEngine
from .result_cache import ResultCache, is_valid_result_id
from .validator import RowValidationError

"""Import service: the request-level flow around the batch pipeline.

upload -> intake checks -> role check -> parse_batch -> provision ->
report encode -> ResultCache.store -> ImportResponse

Intake, role and parse failures raise before any account is touched; per-record
provisioning failures are reported in the response and the error log.
"""

__all__ = [
    "XLSX_CONTENT_TYPE",
    "XLS_CONTENT_TYPE",
    "ALLOWED_CONTENT_TYPES",
    "RESULTS_COLUMNS",
    "RESULTS_COLUMN_WIDTHS",
    "UploadRejectedError",
    "InvalidRoleError",
    "InvalidResultIdError",
    "UploadedFile",
    "ImportService",
]

logger = logging.getLogger(__name__)

XLSX_CONTENT_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
XLS_CONTENT_TYPE = "application/vnd.ms-excel"
ALLOWED_CONTENT_TYPES = {
    ".xlsx": XLSX_CONTENT_TYPE,
    ".xls": XLS_CONTENT_TYPE,
}

RESULTS_SHEET_NAME = "Import Results"
RESULTS_COLUMNS = ["Email", "First Name", "Last Name", "Invitation Link", "Status"]
RESULTS_COLUMN_WIDTHS = [30, 20, 20, 80, 10]


class UploadRejectedError(Exception):
    """Upload outside the intake bounds (size, extension, content type)."""


class InvalidRoleError(Exception):
    pass


class InvalidResultIdError(Exception):
    """Result id does not have the 32-char hex shape."""


@dataclass(frozen=True)
class UploadedFile:
    """An upload already read into memory by the transport."""
    filename: str
    content: bytes
    content_type: str | None = None

    @property
    def extension(self) -> str:
        return Path(self.filename).suffix.lower()

    @classmethod
    def from_path(cls, path: Path, content_type: str | None = None) -> UploadedFile:
        """Read a local file, deriving the content type from its extension when not given."""
        if content_type is None:
            content_type = ALLOWED_CONTENT_TYPES.get(path.suffix.lower())
        return cls(filename=path.name, content=path.read_bytes(), content_type=content_type)


def _parse_role_id(value: Any) -> int:
    if isinstance(value, bool):
        raise InvalidRoleError("Valid role ID is required")
    try:
        role_id = int(str(value).strip())
    except (TypeError, ValueError):
        raise InvalidRoleError("Valid role ID is required") from None
    if role_id <= 0:
        raise InvalidRoleError("Valid role ID is required")
    return role_id


class ImportService:
    """Owns the result cache and wires codec, parser, engine and backends."""

    def __init__(
        self,
        accounts: AccountStore,
        roles: RoleStore,
        hash_password: Callable[[str], str] = get_password_hash,
        *,
        config: ImportConfig | None = None,
        cache: ResultCache | None = None,
        error_log: ErrorLogBuffer | None = None,
        show_progress: bool = False,
    ) -> None:
        self.config = config or ImportConfig()
        self._roles = roles
        self.cache = cache if cache is not None else ResultCache(ttl_seconds=self.config.result_ttl_seconds)
        self.error_log = error_log
        self.engine = ProvisioningEngine(
            accounts,
            hash_password,
            server_url=self.config.server_url,
            workers=self.config.workers,
            show_progress=show_progress,
        )

    def download_template(self) -> bytes:
        return generate_template()

    def list_roles(self) -> list[Role]:
        return self._roles.list_roles()

    def validate_upload(self, upload: UploadedFile) -> None:
        limit = self.config.max_file_size_bytes
        if len(upload.content) > limit:
            raise UploadRejectedError(f"File size exceeds {limit / 1024 / 1024:g}MB limit")
        expected_type = ALLOWED_CONTENT_TYPES.get(upload.extension)
        if expected_type is None:
            allowed = ", ".join(ALLOWED_CONTENT_TYPES)
            raise UploadRejectedError(f"Invalid file type. Only {allowed} files are allowed")
        if upload.content_type != expected_type:
            raise UploadRejectedError(
                f"Content type {upload.content_type!r} does not match {upload.extension} file"
            )

    def resolve_role(self, role_id: Any) -> Role:
        parsed = _parse_role_id(role_id)
        role = self._roles.find_role(parsed)
        if role is None:
            raise InvalidRoleError("Invalid role ID")
        return role

    def import_users(self, upload: UploadedFile, role_id: Any, owner_id: str | int) -> ImportResponse:
        start = time.perf_counter()
        self.validate_upload(upload)
        role = self.resolve_role(role_id)

        try:
            batch = parse_batch(upload.content, max_users=MAX_USERS_PER_IMPORT)
        except RowValidationError as e:
            self._log_error(ErrorRecord.create(upload.filename, e.row_number or -1, "", "ROW_VALIDATION", e.reason))
            self._flush_error_log()
            raise

        logger.info(f"importing {len(batch)} users from {upload.filename} with role {role.name}")
        outcomes = self.engine.provision(batch, role.id)

        report = self.build_report(outcomes)
        result_id = self.cache.store(report, owner_id)

        for outcome in outcomes:
            if not outcome.ok:
                self._log_error(
                    ErrorRecord.create(
                        upload.filename,
                        outcome.row_number,
                        outcome.record.email,
                        outcome.status.error_type,
                        outcome.message or "",
                    )
                )
        self._flush_error_log()

        return ImportResponse.from_outcomes(outcomes, result_id, elapsed_seconds=time.perf_counter() - start)

    def download_results(self, result_id: str, requester_id: str | int) -> bytes:
        if not is_valid_result_id(result_id):
            raise InvalidResultIdError("Invalid result ID format")
        return self.cache.redeem(result_id, requester_id)

    @staticmethod
    def build_report(outcomes: list[ProvisionOutcome]) -> bytes:
        """Results workbook: one row per successfully provisioned record."""
        rows = [
            [
                o.record.email,
                o.record.firstname,
                o.record.lastname,
                o.invitation_link,
                o.status.value,
            ]
            for o in outcomes
            if o.ok
        ]
        return encode(
            RESULTS_COLUMNS,
            rows,
            sheet_name=RESULTS_SHEET_NAME,
            column_widths=RESULTS_COLUMN_WIDTHS,
        )

    def _log_error(self, record: ErrorRecord) -> None:
        if self.error_log is not None:
            self.error_log.append(record)

    def _flush_error_log(self) -> None:
        if self.error_log is None:
            return
        try:
            path = self.error_log.flush()
        except OSError as e:
            # the import itself already succeeded; only the side log is lost
            logger.warning(f"failed to write error log: {e}")
            return
        if path is not None:
            logger.info(f"error log written to {path}")

    def close(self) -> None:
        self.cache.close()

    def __enter__(self) -> ImportService:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
