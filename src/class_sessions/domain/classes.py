"""Domain models for scheduled classes and the people who join them."""

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime

ONE_TIME = "one-time"
WEEKLY_RECURRING = "weekly-recurring"

DAY_NAMES = (
    "monday",
    "tuesday",
    "wednesday",
    "thursday",
    "friday",
    "saturday",
    "sunday",
)


@dataclass(frozen=True)
class ClassDefinition:
    """A class as delivered by the platform backend. Treated as read-only."""

    id: str
    title: str
    subject: str = ""
    schedule_type: str = ONE_TIME
    start_time: str | None = None
    class_date: str | None = None
    recurring_days: tuple[str, ...] = ()
    duration: int | None = None
    custom_duration: int | None = None
    status: str = "scheduled"
    meeting_id: str | None = None
    meeting_link: str | None = None
    tutor_id: str | None = None
    student_ids: tuple[str, ...] = ()

    @property
    def display_title(self) -> str:
        return self.title or self.subject or "Class"

    @property
    def is_recurring(self) -> bool:
        return self.schedule_type == WEEKLY_RECURRING

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> "ClassDefinition":
        """Build a class from backend JSON (camelCase keys, `_id` tolerated)."""
        tutor = payload.get("tutor")
        tutor_id = payload.get("tutorId")
        if tutor_id is None and isinstance(tutor, Mapping):
            tutor_id = tutor.get("_id") or tutor.get("id")
        elif tutor_id is None and tutor is not None:
            tutor_id = tutor
        students = payload.get("studentIds")
        if students is None:
            students = payload.get("students") or []
        student_ids = tuple(
            str(s.get("_id") or s.get("id")) if isinstance(s, Mapping) else str(s)
            for s in students
            if s is not None
        )
        days = payload.get("recurringDays") or []
        return cls(
            id=str(payload.get("id") or payload.get("_id") or ""),
            title=str(payload.get("title") or ""),
            subject=str(payload.get("subject") or ""),
            schedule_type=str(payload.get("scheduleType") or ONE_TIME),
            start_time=_optional_str(payload.get("startTime")),
            class_date=_optional_str(payload.get("classDate")),
            recurring_days=tuple(str(day).strip().lower() for day in days),
            duration=_optional_int(payload.get("duration")),
            custom_duration=_optional_int(payload.get("customDuration")),
            status=str(payload.get("status") or "scheduled"),
            meeting_id=_optional_str(payload.get("meetingId")),
            meeting_link=_optional_str(payload.get("meetingLink")),
            tutor_id=str(tutor_id) if tutor_id is not None else None,
            student_ids=student_ids,
        )


@dataclass(frozen=True)
class Viewer:
    """The signed-in participant looking at a class list."""

    id: str
    role: str
    first_name: str | None = None
    last_name: str | None = None
    username: str | None = None
    time_zone: str | None = None

    @property
    def display_name(self) -> str:
        if self.first_name and self.last_name:
            return f"{self.first_name} {self.last_name}"
        return self.first_name or self.username or self.role.title()


@dataclass(frozen=True)
class IsoInstant:
    """A start time carrying its own date (and possibly an offset)."""

    value: datetime


@dataclass(frozen=True)
class WallClockTime:
    """A bare "HH:MM" time of day that needs a date to anchor it."""

    hour: int
    minute: int

    @property
    def hhmm(self) -> str:
        return f"{self.hour:02d}:{self.minute:02d}"


@dataclass(frozen=True)
class MissingStartTime:
    """No start time was supplied."""


@dataclass(frozen=True)
class InvalidStartTime:
    """A start time was supplied but could not be understood."""

    raw: str = field(default="")


StartTime = IsoInstant | WallClockTime | MissingStartTime | InvalidStartTime


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _optional_int(value: object) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(float(str(value)))
    except ValueError:
        return None
