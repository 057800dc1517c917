# Shared pytest fixtures
from __future__ import annotations

import io
import tempfile
from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pandas as pd
import pytest

from user_import.db.memory import InMemoryAccountStore, InMemoryRoleStore


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """server_url: https://cms.example.com
result_ttl_seconds: 3600
max_file_size_bytes: 5242880
workers: 1
error_log_dir: ./logs
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def build_workbook(sheets: dict[str, list[list[object]]]) -> bytes:
    """Build .xlsx bytes; every sheet is written as raw rows (row 1 = header)."""
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        for sheet_name, rows in sheets.items():
            pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return buffer.getvalue()


@pytest.fixture()
def workbook_builder() -> Callable[[dict[str, list[list[object]]]], bytes]:
    return build_workbook


@pytest.fixture()
def make_workbook() -> Callable[..., bytes]:
    def _make(rows: list[list[object]], header: list[str] | None = None, sheet: str = "Users") -> bytes:
        header = header if header is not None else ["email", "firstname", "lastname"]
        return build_workbook({sheet: [header, *rows]})
    return _make


def fake_hash(password: str) -> str:
    return f"hashed:{password}"


@pytest.fixture()
def hasher() -> Callable[[str], str]:
    return fake_hash


@pytest.fixture()
def accounts() -> InMemoryAccountStore:
    return InMemoryAccountStore()


@pytest.fixture()
def roles() -> InMemoryRoleStore:
    return InMemoryRoleStore()


class FakeClock:
    """Manually advanced UTC clock for cache expiry tests."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2024, 1, 1, 12, 0, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


DATA_DIR = Path(__file__).parent / "data"


@pytest.fixture()
def xls_workbook() -> bytes:
    """Legacy BIFF worksheet: header email/firstname/lastname + a@b.com, c@d.com."""
    return (DATA_DIR / "users.xls").read_bytes()
