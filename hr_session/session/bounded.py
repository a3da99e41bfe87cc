# hr_session/session/bounded.py — Timeout-bounded awaits with a fallback value

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")
F = TypeVar("F")


def _discard_late_outcome(label: str):
    def _callback(task: asyncio.Future) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.warning(
                "Bounded call failed after its timeout elapsed",
                extra={"label": label, "error": str(exc)},
            )

    return _callback


async def with_timeout(
    operation: Awaitable[T],
    seconds: float,
    fallback: F,
    *,
    label: str = "operation",
) -> T | F:
    """
    Race `operation` against a timer of `seconds` and return whichever settles first.

    When the timer wins the operation is left running (it is not cancelled) and its
    eventual result or exception is dropped. Exceptions raised before the timer
    fires propagate to the caller. No retries.
    """
    task = asyncio.ensure_future(operation)
    done, _ = await asyncio.wait({task}, timeout=seconds)
    if task in done:
        return task.result()

    task.add_done_callback(_discard_late_outcome(label))
    logger.warning(
        "Bounded call timed out, using fallback",
        extra={"label": label, "timeout_seconds": seconds},
    )
    return fallback
