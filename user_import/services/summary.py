from __future__ import annotations

from ..models.import_response import ImportResponse

"""SUMMARY line rendering.

Format:
SUMMARY processed={n} success={s} failed={f} elapsed_sec={t}
"""


def _format_seconds(value: float) -> str:
    if value == 0:
        return "0"
    if value == int(value):
        return str(int(value))
    if value < 0.01:
        # avoid scientific notation for very small numbers
        return f"{value:.6f}".rstrip("0").rstrip(".")
    return str(round(value, 3))


def render_summary_line(response: ImportResponse) -> str:
    """Render the SUMMARY line for one import.

    Examples:
        >>> r = ImportResponse(total_processed=3, success_count=2, error_count=1, elapsed_seconds=2.0)
        >>> render_summary_line(r)
        'SUMMARY processed=3 success=2 failed=1 elapsed_sec=2'
    """
    return (
        f"SUMMARY processed={response.total_processed} "
        f"success={response.success_count} "
        f"failed={response.error_count} "
        f"elapsed_sec={_format_seconds(response.elapsed_seconds)}"
    )
