"""Injected sources of "now"."""

from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, tzinfo

Clock = Callable[[], datetime]


@dataclass(frozen=True)
class SystemClock:
    """Wall clock in a fixed zone."""

    tz: tzinfo

    def __call__(self) -> datetime:
        return datetime.now(tz=self.tz)


@dataclass(frozen=True)
class FixedClock:
    """Clock frozen at a single instant."""

    instant: datetime

    def __call__(self) -> datetime:
        return self.instant
