from __future__ import annotations

from .codec import encode

"""Example workbook handed to operators before an import."""

TEMPLATE_SHEET_NAME = "Users"
TEMPLATE_COLUMNS = ["email", "firstname", "lastname"]
TEMPLATE_SAMPLE_DATA = [
    ["user1@example.com", "John", "Doe"],
    ["user2@example.com", "Jane", "Smith"],
]


def generate_template() -> bytes:
    return encode(TEMPLATE_COLUMNS, TEMPLATE_SAMPLE_DATA, sheet_name=TEMPLATE_SHEET_NAME)
