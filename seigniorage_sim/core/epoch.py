#!/usr/bin/env python3
"""
Epoch Clock

Tracks the epoch counter and the ledger time it is measured against.
"""

from dataclasses import dataclass

from .errors import EpochNotOpen

PERIOD = 6 * 60 * 60  # 6 hours


class ChainClock:
    """Single, totally ordered time source shared by the treasury and its callers"""

    def __init__(self, timestamp: int = 0):
        if timestamp < 0:
            raise ValueError(f"timestamp must be non-negative: {timestamp}")
        self._timestamp = timestamp

    def now(self) -> int:
        return self._timestamp

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError(f"time cannot move backwards: {seconds}")
        self._timestamp += seconds
        return self._timestamp

    def set(self, timestamp: int) -> int:
        if timestamp < self._timestamp:
            raise ValueError(
                f"time cannot move backwards: {timestamp} < {self._timestamp}"
            )
        self._timestamp = timestamp
        return self._timestamp


@dataclass
class EpochClock:
    """Epoch counter; index only ever increases by one per advance"""

    start_time: int
    period: int = PERIOD
    index: int = 0
    last_epoch_time: int = 0

    def __post_init__(self):
        if self.period <= 0:
            raise ValueError(f"period must be positive: {self.period}")
        if self.index < 0:
            raise ValueError(f"index must be non-negative: {self.index}")

    def next_epoch_point(self) -> int:
        return self.start_time + self.index * self.period

    def has_started(self, now: int) -> bool:
        return now >= self.start_time

    def is_open(self, now: int) -> bool:
        return now >= self.next_epoch_point()

    def advance(self, now: int) -> int:
        """Move to the next epoch; returns the new index"""
        if not self.is_open(now):
            raise EpochNotOpen(
                f"Treasury: not opened yet (next epoch at {self.next_epoch_point()}, now {now})"
            )
        self.last_epoch_time = self.next_epoch_point()
        self.index += 1
        return self.index
