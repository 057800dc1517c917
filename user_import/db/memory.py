from __future__ import annotations

import threading
from collections.abc import Iterable

from ..models.account import NewAccount, Role
from .base import AccountExistsError

"""In-memory backends (DB 接続なしのモックモード / テスト用)."""

__all__ = [
    "DEFAULT_ROLES",
    "InMemoryAccountStore",
    "InMemoryRoleStore",
]

DEFAULT_ROLES = (
    Role(id=1, name="Super Admin", code="strapi-super-admin"),
    Role(id=2, name="Editor", code="strapi-editor"),
    Role(id=3, name="Author", code="strapi-author"),
)


class InMemoryAccountStore:
    def __init__(self, existing_emails: Iterable[str] = ()) -> None:
        self._lock = threading.Lock()
        self._taken: set[str] = {e.lower() for e in existing_emails}
        self.created: list[NewAccount] = []

    def create(self, account: NewAccount) -> None:
        with self._lock:
            if account.email in self._taken:
                raise AccountExistsError("Admin user already exists")
            self._taken.add(account.email)
            self.created.append(account)

    def __contains__(self, email: object) -> bool:
        with self._lock:
            return email in self._taken


class InMemoryRoleStore:
    def __init__(self, roles: Iterable[Role] = DEFAULT_ROLES) -> None:
        self._roles = {r.id: r for r in roles}

    def find_role(self, role_id: int) -> Role | None:
        return self._roles.get(role_id)

    def list_roles(self) -> list[Role]:
        return sorted(self._roles.values(), key=lambda r: r.name)
