"""Deadline guard for render attempts.

``with_timeout`` stops *waiting* once the deadline passes; it does not cancel
the guarded work. Abandoned tasks keep running in the background and their
outcome is logged and dropped.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable
from typing import TypeVar

from diagramflow.errors import DiagramRenderError, ErrorKind

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Strong references: the event loop only keeps weak ones to running tasks.
_abandoned: set[asyncio.Future] = set()


def _reap_abandoned(task: asyncio.Future) -> None:
    _abandoned.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.debug("Abandoned task %r failed after its deadline: %s", task, exc)
    else:
        logger.debug("Abandoned task %r finished after its deadline", task)


def abandoned_tasks() -> int:
    """Number of timed-out tasks still running in the background."""
    return len(_abandoned)


async def with_timeout(awaitable: Awaitable[T], duration_ms: int, label: str = "Operation") -> T:
    """Await *awaitable* for at most *duration_ms* milliseconds.

    Raises ``DiagramRenderError`` of kind ``render_timeout`` with the message
    ``"<label> timed out after <duration_ms>ms"`` when the deadline wins.
    """
    task = asyncio.ensure_future(awaitable)
    loop = asyncio.get_running_loop()
    deadline = loop.time() + duration_ms / 1000

    while not task.done():
        remaining = deadline - loop.time()
        if remaining <= 0:
            break
        await asyncio.wait({task}, timeout=remaining)

    if task.done():
        return task.result()

    _abandoned.add(task)
    task.add_done_callback(_reap_abandoned)
    logger.debug("%s abandoned after %sms", label, duration_ms)
    raise DiagramRenderError(
        f"{label} timed out after {duration_ms}ms",
        ErrorKind.render_timeout,
    )
