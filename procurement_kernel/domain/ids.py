"""
Identifier generation for revisions, documents and issues.

Engines receive an ``IdGenerator`` callable through their config so that
tests and replays can substitute a deterministic sequence.
"""

from __future__ import annotations

from collections import defaultdict
from typing import Protocol
from uuid import uuid4


class IdGenerator(Protocol):
    """Callable producing a new unique id for an entity kind prefix."""

    def __call__(self, prefix: str) -> str: ...


def generate_id(prefix: str) -> str:
    """Random id of the form ``<prefix>-<12 hex chars>``."""
    return f"{prefix}-{uuid4().hex[:12]}"


class SequentialIdGenerator:
    """
    Deterministic generator: ``<prefix>-000001``, ``<prefix>-000002``, ...

    Counters are kept per prefix.
    """

    def __init__(self, pad_length: int = 6):
        self._pad_length = pad_length
        self._counters: defaultdict[str, int] = defaultdict(int)

    def __call__(self, prefix: str) -> str:
        self._counters[prefix] += 1
        return f"{prefix}-{self._counters[prefix]:0{self._pad_length}d}"
