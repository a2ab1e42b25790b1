"""
Synthetic progress for the import execution stage.

The salon API reports nothing until the whole batch is done, so the bar is
driven by elapsed time: it climbs one step per interval up to a cap while the
request is in flight and jumps to 100 once the response arrives. Nothing here
knows about the wizard state machine or HTTP.
"""

from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Literal

ProgressStatus = Literal["preparing", "importing", "complete"]

DEFAULT_INTERVAL_SECONDS = 0.5
DEFAULT_STEP = 10
DEFAULT_INITIAL = 10
DEFAULT_CAP = 90


@dataclass
class SyntheticProgress:
    started_at: float
    interval: float = DEFAULT_INTERVAL_SECONDS
    step: int = DEFAULT_STEP
    initial: int = DEFAULT_INITIAL
    cap: int = DEFAULT_CAP
    completed: bool = False

    def __post_init__(self) -> None:
        if self.interval <= 0:
            raise ValueError("interval must be positive.")
        if not 0 <= self.initial <= self.cap < 100:
            raise ValueError("Expected 0 <= initial <= cap < 100.")

    @classmethod
    def start(cls, *, clock=time.monotonic, **options) -> "SyntheticProgress":
        return cls(started_at=clock(), **options)

    def value_at(self, now: float) -> int:
        if self.completed:
            return 100
        elapsed = max(0.0, now - self.started_at)
        ticks = int(elapsed // self.interval)
        return min(self.cap, self.initial + ticks * self.step)

    def status_at(self, now: float) -> ProgressStatus:
        if self.completed:
            return "complete"
        if now <= self.started_at:
            return "preparing"
        return "importing"

    def complete(self) -> None:
        self.completed = True
