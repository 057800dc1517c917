from __future__ import annotations

from typing import Protocol

from ..models.account import NewAccount, Role

"""Interfaces of the external account and role backends.

Implementations must make ``create`` an atomic check-and-insert on the email:
two concurrent calls for the same email may not both succeed.
"""

__all__ = [
    "AccountExistsError",
    "AccountStoreError",
    "AccountStore",
    "RoleStore",
]


class AccountStoreError(Exception):
    """Backend failure other than a duplicate email."""


class AccountExistsError(AccountStoreError):
    """An account with this email already exists."""


class AccountStore(Protocol):
    def create(self, account: NewAccount) -> None: ...


class RoleStore(Protocol):
    def find_role(self, role_id: int) -> Role | None: ...

    def list_roles(self) -> list[Role]: ...
