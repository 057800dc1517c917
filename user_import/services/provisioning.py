from __future__ import annotations

import logging
import secrets
from collections.abc import Callable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from urllib.parse import urlencode

from ..config.loader import DEFAULT_SERVER_URL
from ..db.base import AccountExistsError, AccountStore
from ..models.account import NewAccount
from ..models.outcome import ProvisionOutcome
from ..models.user_record import UserRecord
from .batch_parser import FIRST_DATA_ROW
from .progress import ProvisionProgress

"""Provisioning engine: ImportBatch -> one ProvisionOutcome per record.

A failure on one record never stops, skips or corrupts the others; the engine
always returns exactly ``len(batch)`` outcomes in input order.

Duplicate emails inside one batch are settled by a pre-pass before any backend
call: the first occurrence is provisioned, later ones become DUPLICATE_ACCOUNT.
Duplicates against existing accounts are settled by the backend's atomic
check-and-insert. With both in place records can be provisioned on a thread
pool (``workers > 1``) without two creations for one email both succeeding.
"""

__all__ = [
    "PASSWORD_BYTES",
    "TOKEN_BYTES",
    "REGISTER_PATH",
    "ProvisioningEngine",
    "generate_password",
    "generate_registration_token",
    "build_invitation_link",
]

logger = logging.getLogger(__name__)

PASSWORD_BYTES = 16  # 32 hex chars
TOKEN_BYTES = 20  # 40 hex chars
REGISTER_PATH = "/admin/auth/register"


def generate_password() -> str:
    return secrets.token_hex(PASSWORD_BYTES)


def generate_registration_token() -> str:
    return secrets.token_hex(TOKEN_BYTES)


def build_invitation_link(server_url: str, registration_token: str) -> str:
    query = urlencode({"registrationToken": registration_token})
    return f"{server_url.rstrip('/')}{REGISTER_PATH}?{query}"


class ProvisioningEngine:
    """Create one inactive account with one-time credentials per record.

    Parameters
    ----------
    accounts: account-creation capability
    hash_password: password hashing capability (plaintext -> hash)
    server_url: base URL of the invitation links
    workers: thread pool size; 1 provisions sequentially in the calling thread
    show_progress: display a tqdm bar when stdout is a TTY
    """

    def __init__(
        self,
        accounts: AccountStore,
        hash_password: Callable[[str], str],
        *,
        server_url: str = DEFAULT_SERVER_URL,
        workers: int = 1,
        show_progress: bool = False,
    ) -> None:
        if workers < 1:
            raise ValueError("workers must be >= 1")
        self._accounts = accounts
        self._hash_password = hash_password
        self.server_url = server_url
        self.workers = workers
        self.show_progress = show_progress

    def provision(self, batch: Sequence[UserRecord], role_id: int) -> list[ProvisionOutcome]:
        outcomes: list[ProvisionOutcome | None] = [None] * len(batch)

        # 同一バッチ内の重複メールはバックエンド呼び出し前に確定させる
        seen: set[str] = set()
        pending: list[int] = []
        for index, record in enumerate(batch):
            if record.email in seen:
                outcomes[index] = ProvisionOutcome.duplicate(record, index + FIRST_DATA_ROW)
                logger.error(f"failed to create user {record.email}: duplicate email in batch")
            else:
                seen.add(record.email)
                pending.append(index)

        with ProvisionProgress(len(batch), enabled=self.show_progress) as progress:
            for outcome in outcomes:
                if outcome is not None:
                    progress.advance(success=False)

            if self.workers == 1 or len(pending) <= 1:
                for index in pending:
                    outcome = self._provision_one(batch[index], role_id, index + FIRST_DATA_ROW)
                    outcomes[index] = outcome
                    progress.advance(success=outcome.ok)
            else:
                with ThreadPoolExecutor(max_workers=self.workers) as pool:
                    futures = {
                        pool.submit(self._provision_one, batch[index], role_id, index + FIRST_DATA_ROW): index
                        for index in pending
                    }
                    for future in as_completed(futures):
                        outcome = future.result()
                        outcomes[futures[future]] = outcome
                        progress.advance(success=outcome.ok)

        return [o for o in outcomes if o is not None]

    def _provision_one(self, record: UserRecord, role_id: int, row_number: int) -> ProvisionOutcome:
        """Provision a single record. Never raises for backend failures."""
        registration_token = generate_registration_token()
        try:
            hashed_password = self._hash_password(generate_password())
            self._accounts.create(
                NewAccount(
                    email=record.email,
                    firstname=record.firstname,
                    lastname=record.lastname,
                    hashed_password=hashed_password,
                    registration_token=registration_token,
                    roles=[role_id],
                    is_active=False,
                )
            )
        except AccountExistsError:
            logger.error(f"failed to create user {record.email}: already exists")
            return ProvisionOutcome.duplicate(record, row_number)
        except Exception as e:
            logger.error(f"failed to create user {record.email}: {e}")
            return ProvisionOutcome.failure(record, row_number, str(e))

        logger.debug(f"created user {record.email} (row {row_number})")
        return ProvisionOutcome.success(
            record, row_number, build_invitation_link(self.server_url, registration_token)
        )
