from __future__ import annotations

import io

from openpyxl import load_workbook

from user_import.excel.codec import decode
from user_import.excel.template import TEMPLATE_COLUMNS, TEMPLATE_SAMPLE_DATA, generate_template


def test_template_sheet_and_header():
    wb = load_workbook(io.BytesIO(generate_template()))
    assert wb.sheetnames == ["Users"]
    assert [c.value for c in wb["Users"][1]] == ["email", "firstname", "lastname"]


def test_template_round_trip_matches_sample_data():
    rows = decode(generate_template())
    assert [[r[c] for c in TEMPLATE_COLUMNS] for r in rows] == TEMPLATE_SAMPLE_DATA


def test_template_generation_is_repeatable():
    assert decode(generate_template()) == decode(generate_template())
