"""
Cancellation Token

One token per scan. The scan processor cancels it when the scanner is
paused or stopped; every suspension point checks it afterwards.
"""

from typing import Optional

from foodscan.core.exceptions import ScanAborted


class CancellationToken:
    """Cooperative cancellation signal for a single pipeline invocation."""

    def __init__(self):
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        self._cancelled = True

    def raise_if_cancelled(self) -> None:
        if self._cancelled:
            raise ScanAborted()


def check_cancelled(token: Optional[CancellationToken]) -> None:
    """Raise ScanAborted if a token was given and has been cancelled."""
    if token is not None:
        token.raise_if_cancelled()
