from __future__ import annotations

import psycopg2
import pytest

from user_import.config.loader import DatabaseConfig
from user_import.db.accounts import PgAccountStore, PgRoleStore
from user_import.db.base import AccountExistsError, AccountStoreError
from user_import.db.connection import resolve_dsn
from user_import.models.account import NewAccount, Role


class DummyCursor:
    def __init__(self, fetchone_results: list[object] | None = None, fail_on: str | None = None) -> None:
        self.queries: list[tuple[str, tuple | None]] = []
        self.fetchone_results = list(fetchone_results or [])
        self.fetchall_result: list[tuple] = []
        self.fail_on = fail_on

    def execute(self, sql: str, params: tuple | None = None) -> None:
        self.queries.append((sql, params))
        if self.fail_on and sql.startswith(self.fail_on):
            raise psycopg2.DatabaseError("relation does not exist\n")

    def fetchone(self):
        return self.fetchone_results.pop(0) if self.fetchone_results else None

    def fetchall(self):
        return self.fetchall_result


def _account(email: str = "a@b.com") -> NewAccount:
    return NewAccount(
        email=email,
        firstname="Jo",
        lastname="Doe",
        hashed_password="$2b$12$hash",
        registration_token="tok",
        roles=[3],
    )


def _sql(cur: DummyCursor) -> list[str]:
    return [q for q, _ in cur.queries]


def test_create_inserts_user_and_role_link():
    cur = DummyCursor(fetchone_results=[(41,)])
    PgAccountStore(cur).create(_account())
    sql = _sql(cur)
    assert sql[0] == "SAVEPOINT provision_user"
    assert sql[1].startswith("INSERT INTO admin_users ")
    assert "ON CONFLICT (email) DO NOTHING RETURNING id" in sql[1]
    assert cur.queries[1][1] == ("a@b.com", "Jo", "Doe", "$2b$12$hash", False, "tok")
    assert cur.queries[2] == ("INSERT INTO admin_users_roles_links (user_id, role_id) VALUES (%s, %s)", (41, 3))
    assert sql[-1] == "RELEASE SAVEPOINT provision_user"


def test_create_conflict_raises_exists():
    cur = DummyCursor(fetchone_results=[None])
    with pytest.raises(AccountExistsError):
        PgAccountStore(cur).create(_account())
    sql = _sql(cur)
    assert "RELEASE SAVEPOINT provision_user" in sql
    assert not any(s.startswith("INSERT INTO admin_users_roles_links") for s in sql)


def test_create_db_error_rolls_back_to_savepoint():
    cur = DummyCursor(fail_on="INSERT INTO admin_users ")
    with pytest.raises(AccountStoreError, match="relation does not exist"):
        PgAccountStore(cur).create(_account())
    assert _sql(cur)[-1] == "ROLLBACK TO SAVEPOINT provision_user"


def test_role_store_find_and_list():
    cur = DummyCursor(fetchone_results=[(2, "Editor", "strapi-editor")])
    cur.fetchall_result = [(3, "Author", "strapi-author"), (2, "Editor", "strapi-editor")]
    store = PgRoleStore(cur)
    assert store.find_role(2) == Role(2, "Editor", "strapi-editor")
    assert store.find_role(99) is None
    assert [r.name for r in store.list_roles()] == ["Author", "Editor"]
    assert cur.queries[-1][0].endswith("ORDER BY name ASC")


def test_resolve_dsn_prefers_environment(monkeypatch):
    monkeypatch.setenv("DATABASE_URL", "postgresql://env/db")
    assert resolve_dsn(DatabaseConfig(dsn="postgresql://cfg/db")) == "postgresql://env/db"


def test_resolve_dsn_from_config_parts(monkeypatch):
    for var in ("DATABASE_URL", "PGDSN", "PGHOST", "PGPORT", "PGUSER", "PGPASSWORD", "PGDATABASE"):
        monkeypatch.delenv(var, raising=False)
    dsn = resolve_dsn(DatabaseConfig(host="db", port=6543, user="u", password="p", database="d"))
    assert dsn == "host=db port=6543 user=u dbname=d password=p"
