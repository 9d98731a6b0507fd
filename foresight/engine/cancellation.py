"""Caller-side cancellation for long-running traversals."""

import threading


class CancellationToken:
    """
    Flag checked by the propagation engine between node expansions.

    Thread-safe: one thread may cancel while another traverses.

    Example:
        >>> token = CancellationToken()
        >>> token.cancel()
        >>> token.cancelled
        True
    """

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()
