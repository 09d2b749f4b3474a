"""Completion worker pool and the deadline race around it.

Completion requests block on network I/O, so they run on one bounded
``ThreadPoolExecutor`` sized by ``max_workers``.  :func:`call_with_deadline`
waits for such a call up to a time limit.  When the limit passes first, the
request's :class:`CancelToken` is set so the provider loop stops before its
next model or key, and :class:`DeadlineExceeded` is raised.  The reply that
was already requested is not interrupted.
"""

from __future__ import annotations

import asyncio
import concurrent.futures
import functools
import logging
import threading
from collections.abc import Callable
from typing import Any, TypeVar

from planforge.config import get_settings
from planforge.core.cancellation import CancelToken

logger = logging.getLogger(__name__)

T = TypeVar("T")

_pool: concurrent.futures.ThreadPoolExecutor | None = None
_pool_lock = threading.Lock()


class DeadlineExceeded(Exception):
    """A completion call lost the race against its time limit."""

    def __init__(self, limit: float):
        super().__init__(f"no result within {limit:g}s")
        self.limit = limit


def get_executor() -> concurrent.futures.ThreadPoolExecutor:
    """Return the shared completion pool, creating it on first use."""
    global _pool
    with _pool_lock:
        if _pool is None or _pool._shutdown:
            workers = get_settings().max_workers
            _pool = concurrent.futures.ThreadPoolExecutor(
                max_workers=workers,
                thread_name_prefix="planforge-completion",
            )
            logger.debug("Started completion pool with %d workers", workers)
    return _pool


def call_with_deadline(fn: Callable[..., T], *args: Any, limit: float, cancel: CancelToken, **kwargs: Any) -> T:
    """Run ``fn(*args, **kwargs)`` on the pool, waiting at most *limit* seconds."""
    future = get_executor().submit(fn, *args, **kwargs)
    try:
        return future.result(timeout=limit)
    except concurrent.futures.TimeoutError:
        cancel.cancel()
        future.cancel()
        raise DeadlineExceeded(limit) from None


async def run_in_executor(fn: Callable[..., T], *args: Any, **kwargs: Any) -> T:
    """Run *fn* on the pool and ``await`` the result.

    Usage::

        result = await run_in_executor(recover, raw, SchemaKind.SPRINT_PLAN)
    """
    loop = asyncio.get_running_loop()
    bound = functools.partial(fn, *args, **kwargs)
    return await loop.run_in_executor(get_executor(), bound)


async def call_with_deadline_async(
    fn: Callable[..., T], *args: Any, limit: float, cancel: CancelToken, **kwargs: Any
) -> T:
    """``await``-able :func:`call_with_deadline`; the event loop stays free while waiting."""
    try:
        return await asyncio.wait_for(run_in_executor(fn, *args, **kwargs), timeout=limit)
    except asyncio.TimeoutError:
        cancel.cancel()
        raise DeadlineExceeded(limit) from None


def shutdown_executor(wait: bool = False) -> None:
    """Stop the pool; queued completions are dropped."""
    global _pool
    with _pool_lock:
        if _pool is not None:
            _pool.shutdown(wait=wait, cancel_futures=True)
            _pool = None
