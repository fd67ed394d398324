"""Awaiting agent calls under a deadline."""

import asyncio
from typing import Any, Awaitable


async def run_with_deadline(awaitable: Awaitable[Any], timeout: float) -> tuple[bool, Any]:
    """Await ``awaitable`` for at most ``timeout`` seconds.

    Returns ``(True, value)`` when it finished in time and ``(False, None)``
    when the deadline passed, in which case it is cancelled. Exceptions
    raised by the awaitable itself propagate unchanged, including its own
    ``TimeoutError``s, so callers can tell the two apart.
    """
    task = asyncio.ensure_future(awaitable)
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        task.cancel()
        raise

    if not done:
        task.cancel()
        task.add_done_callback(_retrieve)
        return False, None
    return True, task.result()


def _retrieve(task: asyncio.Future) -> None:
    # Mark a late failure as seen; the caller already reported the timeout
    if not task.cancelled():
        task.exception()
