"""Per-request cancellation for in-flight completion calls.

The repair pipeline itself is never cancelled; a ``CancelToken`` only stops a
provider's retry loop once the caller's timeout race has been lost.
"""

from __future__ import annotations

import threading


class CancelToken:
    """Lightweight, per-request cancellation token (thread-safe).

    Usage::

        token = CancelToken()
        future = executor.submit(llm.generate, ..., cancel_check=token.is_set)
        # later, when the timeout fires:
        token.cancel()
    """

    __slots__ = ("_event",)

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        """Request cancellation."""
        self._event.set()

    def is_set(self) -> bool:
        """Return ``True`` if cancellation has been requested."""
        return self._event.is_set()

    def reset(self) -> None:
        """Clear the cancellation flag for reuse."""
        self._event.clear()
