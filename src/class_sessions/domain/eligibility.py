"""Domain models for occurrences, join windows and eligibility."""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import StrEnum


class EligibilityStatus(StrEnum):
    """Display status of a class for one viewer at one instant."""

    CANCELLED = "cancelled"
    COMPLETED = "completed"
    NOT_ASSIGNED = "not-assigned"
    NOT_TODAY = "not-today"
    ERROR = "error"
    TOO_EARLY = "too-early"
    CAN_JOIN = "can-join"
    IN_PROGRESS = "in-progress"
    ENDING = "ending"
    ENDED = "ended"
    UNKNOWN = "unknown"


JOINABLE_STATUSES = frozenset(
    {
        EligibilityStatus.CAN_JOIN,
        EligibilityStatus.IN_PROGRESS,
        EligibilityStatus.ENDING,
    }
)


@dataclass(frozen=True)
class EligibilityPolicy:
    """Window sizes and special cases applied by the eligibility engine."""

    name: str
    pre_join_minutes: int = 15
    grace_minutes: int = 30
    one_time_always_joinable: bool = False


GENERIC_POLICY = EligibilityPolicy(name="generic")
# Tutors may enter one-time classes whenever they are scheduled; recurring
# classes close as soon as they end.
TUTOR_POLICY = EligibilityPolicy(
    name="tutor", grace_minutes=0, one_time_always_joinable=True
)

POLICIES = {policy.name: policy for policy in (GENERIC_POLICY, TUTOR_POLICY)}


@dataclass(frozen=True)
class ResolvedOccurrence:
    """A concrete dated instance of a class, or the invalid sentinel."""

    start: datetime | None
    end: datetime | None
    exists_today: bool
    next_day: str | None = None

    @property
    def is_valid(self) -> bool:
        return self.start is not None and self.end is not None


INVALID_OCCURRENCE = ResolvedOccurrence(start=None, end=None, exists_today=False)


@dataclass(frozen=True)
class JoinWindow:
    """Instants bounding when a participant may enter a session."""

    opens_at: datetime
    starts_at: datetime
    class_ends_at: datetime
    grace_ends_at: datetime

    @classmethod
    def around(
        cls, start: datetime, end: datetime, policy: EligibilityPolicy
    ) -> "JoinWindow":
        return cls(
            opens_at=start - timedelta(minutes=policy.pre_join_minutes),
            starts_at=start,
            class_ends_at=end,
            grace_ends_at=end + timedelta(minutes=policy.grace_minutes),
        )


@dataclass(frozen=True)
class EligibilityResult:
    """Outcome of a single eligibility evaluation."""

    status: EligibilityStatus
    message: str
    minutes_until: int | None = None

    @property
    def can_join(self) -> bool:
        return self.status in JOINABLE_STATUSES
