from __future__ import annotations

import io
from collections.abc import Sequence
from typing import Any

import pandas as pd
from openpyxl.utils import get_column_letter

"""Spreadsheet codec.

decode: バイト列 -> 先頭シートの行 (1 行目ヘッダ, 2 行目以降データ)。
encode: ヘッダ + データ行 -> 単一シートの .xlsx バイト列。

テンプレート生成と結果レポート生成の両方が encode を共有する。
"""

__all__ = [
    "RawRow",
    "ParseError",
    "MalformedFileError",
    "EmptyDataError",
    "decode",
    "encode",
]

RawRow = dict[str, Any]


class ParseError(Exception):
    """Base class for errors that make an uploaded file unusable as a whole."""


class MalformedFileError(ParseError):
    """Raised when the bytes are not a readable workbook or hold no sheets."""


class EmptyDataError(ParseError):
    """Raised when the first sheet has a header but no data rows."""


def _cell(value: Any) -> Any:
    if pd.isna(value):
        return None
    return value


def decode(content: bytes) -> list[RawRow]:
    """Decode workbook bytes into rows keyed by the header of the first sheet.

    Rows whose cells are all blank are dropped. Header cells that are blank
    do not produce a column.
    """
    try:
        xls = pd.ExcelFile(io.BytesIO(content))
    except Exception as e:  # zip / xlrd / format detection errors all land here
        raise MalformedFileError(f"Unable to read spreadsheet: {e}") from e

    if not xls.sheet_names:
        raise MalformedFileError("Excel file contains no sheets")

    try:
        # dtype=object で数値/文字列をそのまま保持 ("NA" 等の文字列も NaN 化しない)
        df = xls.parse(xls.sheet_names[0], header=None, dtype=object, keep_default_na=False, na_values=[])
    except Exception as e:
        raise MalformedFileError(f"Unable to read first sheet: {e}") from e

    if df.shape[0] < 2:
        raise EmptyDataError("Excel file contains no user data")

    columns: list[tuple[int, str]] = []
    for position, header in enumerate(df.iloc[0].tolist()):
        if pd.isna(header) or str(header).strip() == "":
            continue
        columns.append((position, str(header).strip()))

    rows: list[RawRow] = []
    for _, raw in df.iloc[1:].iterrows():
        values = raw.tolist()
        if all(pd.isna(v) or (isinstance(v, str) and v.strip() == "") for v in values):
            continue
        rows.append({name: _cell(values[position]) for position, name in columns})

    if not rows:
        raise EmptyDataError("Excel file contains no user data")
    return rows


def encode(
    header: Sequence[str],
    rows: Sequence[Sequence[Any]],
    *,
    sheet_name: str = "Sheet1",
    column_widths: Sequence[int] | None = None,
) -> bytes:
    """Encode a header and data rows as a single-sheet .xlsx document."""
    frame = pd.DataFrame([list(r) for r in rows], columns=list(header), dtype=object)
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        frame.to_excel(writer, sheet_name=sheet_name, index=False)
        if column_widths:
            worksheet = writer.sheets[sheet_name]
            for index, width in enumerate(column_widths, start=1):
                worksheet.column_dimensions[get_column_letter(index)].width = width
    return buffer.getvalue()
