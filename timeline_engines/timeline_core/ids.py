"""Id generators injected into the timeline store."""
from __future__ import annotations

from collections import defaultdict
from typing import Callable, Dict
from uuid import uuid4

IdGenerator = Callable[[str], str]


def uuid_ids(prefix: str) -> str:
    return f"{prefix}-{uuid4().hex}"


class SequentialIds:
    """Deterministic ``<prefix>-<n>`` ids, counted per prefix."""

    def __init__(self, start: int = 1) -> None:
        self._counters: Dict[str, int] = defaultdict(lambda: start)

    def __call__(self, prefix: str) -> str:
        value = self._counters[prefix]
        self._counters[prefix] = value + 1
        return f"{prefix}-{value}"
