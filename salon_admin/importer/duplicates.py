"""
Cursor over the duplicate matches shown one at a time in the review stage.
"""

from __future__ import annotations

import enum
from typing import Sequence

from .records import DuplicateMatch


class DuplicateStrategy(str, enum.Enum):
    """Single policy applied to every detected duplicate in one import run."""

    SKIP = "skip"
    OVERWRITE = "overwrite"

    @property
    def label(self) -> str:
        return "Skip" if self is DuplicateStrategy.SKIP else "Overwrite"

    @property
    def description(self) -> str:
        if self is DuplicateStrategy.SKIP:
            return "Skip duplicates"
        return "Overwrite duplicates"

    @classmethod
    def coerce(cls, value) -> "DuplicateStrategy":
        if isinstance(value, cls):
            return value
        normalized = str(value or "").strip().lower()
        try:
            return cls(normalized)
        except ValueError as exc:
            raise ValueError("Duplicate strategy must be 'skip' or 'overwrite'.") from exc


class DuplicateReview:
    """
    Prev/next navigation over duplicate matches.

    The index is clamped to ``[0, len - 1]``; stepping past either end leaves it
    unchanged rather than wrapping around.
    """

    def __init__(self, matches: Sequence[DuplicateMatch], index: int = 0) -> None:
        self.matches = tuple(matches)
        self.index = self._clamp(index)

    def _clamp(self, index: int) -> int:
        if not self.matches:
            return 0
        return max(0, min(int(index), len(self.matches) - 1))

    @property
    def is_empty(self) -> bool:
        return not self.matches

    @property
    def count(self) -> int:
        return len(self.matches)

    @property
    def current(self) -> DuplicateMatch | None:
        if self.is_empty:
            return None
        return self.matches[self.index]

    @property
    def position(self) -> int:
        return self.index + 1

    @property
    def label(self) -> str:
        return f"Duplicate {self.position} of {self.count}"

    @property
    def has_next(self) -> bool:
        return self.index < len(self.matches) - 1

    @property
    def has_previous(self) -> bool:
        return self.index > 0

    def next(self) -> int:
        if self.has_next:
            self.index += 1
        return self.index

    def previous(self) -> int:
        if self.has_previous:
            self.index -= 1
        return self.index
