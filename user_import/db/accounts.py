from __future__ import annotations

import threading
from typing import Any

import psycopg2

from ..models.account import NewAccount, Role
from .base import AccountExistsError, AccountStoreError

"""PostgreSQL backends (psycopg2).

Tables (admin スキーマ想定):
- admin_users(id serial, email text unique, firstname, lastname, password,
  is_active bool, registration_token text)
- admin_users_roles_links(user_id, role_id)
- admin_roles(id, name, code)

Each account is created inside a SAVEPOINT so one failing row leaves the
surrounding transaction usable for the next row. The unique constraint on
email plus ``ON CONFLICT DO NOTHING`` makes create an atomic check-and-insert.
psycopg2 cursors are not thread safe, so calls are serialized per store.
"""

__all__ = [
    "PgAccountStore",
    "PgRoleStore",
]

INSERT_USER_SQL = (
    "INSERT INTO admin_users (email, firstname, lastname, password, is_active, registration_token) "
    "VALUES (%s, %s, %s, %s, %s, %s) ON CONFLICT (email) DO NOTHING RETURNING id"
)
INSERT_ROLE_LINK_SQL = "INSERT INTO admin_users_roles_links (user_id, role_id) VALUES (%s, %s)"
SELECT_ROLE_SQL = "SELECT id, name, code FROM admin_roles WHERE id = %s"
SELECT_ROLES_SQL = "SELECT id, name, code FROM admin_roles ORDER BY name ASC"


class PgAccountStore:
    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor
        self._lock = threading.Lock()

    def create(self, account: NewAccount) -> None:
        with self._lock:
            cur = self._cursor
            cur.execute("SAVEPOINT provision_user")
            try:
                cur.execute(
                    INSERT_USER_SQL,
                    (
                        account.email,
                        account.firstname,
                        account.lastname,
                        account.hashed_password,
                        account.is_active,
                        account.registration_token,
                    ),
                )
                row = cur.fetchone()
                if row is None:
                    cur.execute("RELEASE SAVEPOINT provision_user")
                    raise AccountExistsError("Admin user already exists")
                for role_id in account.roles:
                    cur.execute(INSERT_ROLE_LINK_SQL, (row[0], role_id))
            except psycopg2.Error as e:
                cur.execute("ROLLBACK TO SAVEPOINT provision_user")
                raise AccountStoreError(str(e).strip()) from e
            cur.execute("RELEASE SAVEPOINT provision_user")


class PgRoleStore:
    def __init__(self, cursor: Any) -> None:
        self._cursor = cursor

    def find_role(self, role_id: int) -> Role | None:
        self._cursor.execute(SELECT_ROLE_SQL, (role_id,))
        row = self._cursor.fetchone()
        if row is None:
            return None
        return Role(id=row[0], name=row[1], code=row[2])

    def list_roles(self) -> list[Role]:
        self._cursor.execute(SELECT_ROLES_SQL)
        return [Role(id=r[0], name=r[1], code=r[2]) for r in self._cursor.fetchall()]
