"""Container id generators for rendered diagrams."""

from __future__ import annotations

import itertools
import uuid
from collections.abc import Callable

IdFactory = Callable[[], str]


def uuid_ids(prefix: str = "diagram") -> IdFactory:
    """Collision-resistant ids such as ``diagram-3f2a9c1e04b7``."""

    def next_id() -> str:
        return f"{prefix}-{uuid.uuid4().hex[:12]}"

    return next_id


def counter_ids(prefix: str = "diagram", start: int = 1) -> IdFactory:
    """Deterministic ids (``diagram-1``, ``diagram-2``, ...)."""
    counter = itertools.count(start)

    def next_id() -> str:
        return f"{prefix}-{next(counter)}"

    return next_id
