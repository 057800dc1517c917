from __future__ import annotations

import io
import json
import logging
from pathlib import Path

import pytest
from openpyxl import load_workbook

from user_import.cli import main as cli_main
from user_import.logging.init import LOGGER_NAME, reset_logging


@pytest.fixture(autouse=True)
def _clean_logging(monkeypatch):
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    reset_logging()
    yield
    reset_logging()
    logging.getLogger(LOGGER_NAME).handlers.clear()


def _json_lines(out: str) -> list[dict]:
    return [json.loads(line) for line in out.splitlines() if line.startswith("{")]


def test_cli_template(temp_workdir: Path, capsys):
    target = temp_workdir / "template.xlsx"
    code = cli_main(["template", str(target)])
    assert code == 0
    ws = load_workbook(target).active
    assert ws.title == "Users"
    assert ws["A2"].value == "user1@example.com"
    assert "INFO template written to" in capsys.readouterr().out


def test_cli_roles(write_config, capsys):
    code = cli_main(["roles"])
    out = capsys.readouterr().out
    assert code == 0
    assert [r["name"] for r in _json_lines(out)] == ["Author", "Editor", "Super Admin"]


def test_cli_import_all_success(write_config, temp_workdir: Path, make_workbook, capsys):
    src = temp_workdir / "data" / "users.xlsx"
    src.write_bytes(make_workbook([["a@b.com", "Jo", "Doe"], ["c@d.com", "Al", "Smith"]]))
    results = temp_workdir / "results.xlsx"

    code = cli_main(["import", str(src), "--role-id", "2", "--owner", "admin-1", "--output", str(results)])
    out = capsys.readouterr().out

    assert code == 0
    assert '"successCount": 2' in out
    assert "SUMMARY processed=2 success=2 failed=0 elapsed_sec=" in out
    ws = load_workbook(io.BytesIO(results.read_bytes()))["Import Results"]
    assert ws.max_row == 3


def test_cli_import_partial_failure(write_config, temp_workdir: Path, make_workbook, capsys):
    src = temp_workdir / "data" / "users.xlsx"
    src.write_bytes(make_workbook([["dup@x.com"], ["dup@x.com"]], header=["email"]))

    code = cli_main(["import", str(src), "--role-id", "1", "--owner", "admin-1",
                     "--output", str(temp_workdir / "out.xlsx")])
    out = capsys.readouterr().out

    assert code == 2
    assert "SUMMARY processed=2 success=1 failed=1" in out
    assert '"error": "Admin user already exists"' in out
    assert list((temp_workdir / "logs").glob("errors-*.log"))


def test_cli_import_invalid_role(write_config, temp_workdir: Path, make_workbook, capsys):
    src = temp_workdir / "data" / "users.xlsx"
    src.write_bytes(make_workbook([["a@b.com"]], header=["email"]))
    code = cli_main(["import", str(src), "--role-id", "99", "--owner", "admin-1"])
    assert code == 1
    assert "ERROR import: Invalid role ID" in capsys.readouterr().out


def test_cli_import_invalid_row(write_config, temp_workdir: Path, make_workbook, capsys):
    src = temp_workdir / "data" / "users.xlsx"
    src.write_bytes(make_workbook([["not-an-email"]], header=["email"]))
    code = cli_main(["import", str(src), "--role-id", "1", "--owner", "admin-1"])
    assert code == 1
    assert "ERROR import: Row 2: Invalid email format: not-an-email" in capsys.readouterr().out


def test_cli_import_missing_file(write_config, temp_workdir: Path, capsys):
    code = cli_main(["import", str(temp_workdir / "nope.xlsx"), "--role-id", "1", "--owner", "x"])
    assert code == 1
    assert "ERROR import: cannot read" in capsys.readouterr().out


def test_cli_missing_config(temp_workdir: Path, capsys):
    # config/import.yml 無し → exit 1
    code = cli_main(["roles"])
    assert code == 1
    assert "ERROR config:" in capsys.readouterr().out


def test_cli_debug_flag(write_config, capsys):
    code = cli_main(["--debug", "roles"])
    assert code == 0
    out = capsys.readouterr().out
    assert "DEBUG debug mode enabled" in out
    assert "DEBUG DB connect disabled" in out
