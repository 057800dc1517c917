from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Progress display for the provisioning pass (tqdm, TTY only).

Single tqdm instance per batch; disabled in non-TTY environments (CI, piped
output) to avoid ANSI control sequence spam.
"""

__all__ = [
    "ProvisionProgress",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ProvisionProgress:
    """Progress bar over the records of one batch."""

    def __init__(self, total_records: int, *, description: str = "Provisioning users", enabled: bool = True) -> None:
        self.total_records = total_records
        self.description = description
        self.done = 0
        self.succeeded = 0
        self.failed = 0

        self.enabled = enabled and is_tty_enabled()
        self.pbar: TqdmType[Any] | None
        if self.enabled:
            self.pbar = tqdm(
                total=total_records,
                desc=description,
                unit="user",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )
        else:
            self.pbar = None

    def advance(self, success: bool) -> None:
        self.done += 1
        if success:
            self.succeeded += 1
        else:
            self.failed += 1
        if self.pbar is not None:
            self.pbar.update(1)
            self.pbar.set_postfix(success=self.succeeded, failed=self.failed)

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ProvisionProgress:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
