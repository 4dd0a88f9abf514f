"""Detection of overlapping class schedules for tutors and students."""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from class_sessions.domain.classes import ClassDefinition, IsoInstant, WallClockTime
from class_sessions.services.occurrences import day_name
from class_sessions.services.timezones import minutes_to_hhmm
from class_sessions.services.wall_clock import classify_start_time, parse_class_date

BUFFER_MINUTES = 5
DEFAULT_SLOT_MINUTES = 35


@dataclass(frozen=True)
class TimeSlot:
    """A time-of-day interval in minutes after midnight."""

    start: int
    duration: int

    @property
    def end(self) -> int:
        return self.start + self.duration

    @property
    def label(self) -> str:
        return f"{minutes_to_hhmm(self.start)} - {minutes_to_hhmm(self.end)}"


@dataclass(frozen=True)
class ScheduleConflict:
    """An existing class that collides with a proposed one."""

    existing: ClassDefinition
    conflict_date: str
    conflict_time: str
    conflicting_students: tuple[str, ...] = ()


def time_slots_overlap(
    first: TimeSlot, second: TimeSlot, buffer_minutes: int = BUFFER_MINUTES
) -> bool:
    """Return True when the buffered slots intersect."""
    return (first.start - buffer_minutes < second.end + buffer_minutes) and (
        second.start - buffer_minutes < first.end + buffer_minutes
    )


def time_slot(class_item: ClassDefinition) -> TimeSlot | None:
    """Return the class's daily slot, or None without a usable start time."""
    start = classify_start_time(class_item.start_time)
    if isinstance(start, WallClockTime):
        minutes = start.hour * 60 + start.minute
    elif isinstance(start, IsoInstant):
        minutes = start.value.hour * 60 + start.value.minute
    else:
        return None
    duration = class_item.custom_duration or class_item.duration or DEFAULT_SLOT_MINUTES
    return TimeSlot(start=minutes, duration=duration)


def check_tutor_conflicts(
    new_class: ClassDefinition,
    existing: Iterable[ClassDefinition],
    tutor_id: str | None,
    exclude_class_id: str | None = None,
) -> list[ScheduleConflict]:
    """Return the tutor's existing classes that collide with `new_class`."""
    new_slot = time_slot(new_class)
    if not tutor_id or new_slot is None:
        return []
    conflicts = []
    for other in existing:
        if other.tutor_id != tutor_id or other.id == exclude_class_id:
            continue
        conflict = _conflict(new_class, new_slot, other)
        if conflict is not None:
            conflicts.append(conflict)
    return conflicts


def check_student_conflicts(
    new_class: ClassDefinition,
    existing: Iterable[ClassDefinition],
    student_ids: Iterable[str],
    exclude_class_id: str | None = None,
) -> list[ScheduleConflict]:
    """Return existing classes sharing a student and colliding with `new_class`."""
    students = list(student_ids)
    new_slot = time_slot(new_class)
    if not students or new_slot is None:
        return []
    conflicts = []
    for other in existing:
        if other.id == exclude_class_id:
            continue
        shared = tuple(sid for sid in students if sid in other.student_ids)
        if not shared:
            continue
        conflict = _conflict(new_class, new_slot, other)
        if conflict is not None:
            conflicts.append(
                ScheduleConflict(
                    existing=conflict.existing,
                    conflict_date=conflict.conflict_date,
                    conflict_time=conflict.conflict_time,
                    conflicting_students=shared,
                )
            )
    return conflicts


def conflict_messages(
    tutor_conflicts: list[ScheduleConflict],
    student_conflicts: list[ScheduleConflict],
    tutor_name: str | None = None,
    student_names: Mapping[str, str] | None = None,
) -> list[str]:
    """Render conflicts as user-facing sentences."""
    names = student_names or {}
    messages = []
    for conflict in tutor_conflicts:
        messages.append(
            f"{tutor_name or 'Selected tutor'} already has a class scheduled from "
            f"{conflict.conflict_time} on {conflict.conflict_date}. "
            "Please select a different time slot."
        )
    for conflict in student_conflicts:
        who = ", ".join(
            names.get(sid, "Selected student") for sid in conflict.conflicting_students
        )
        verb = "have" if len(conflict.conflicting_students) > 1 else "has"
        messages.append(
            f"{who} already {verb} a class scheduled from {conflict.conflict_time} "
            f"on {conflict.conflict_date}. Please select a different time slot."
        )
    return messages


def _conflict(
    new_class: ClassDefinition, new_slot: TimeSlot, other: ClassDefinition
) -> ScheduleConflict | None:
    other_slot = time_slot(other)
    if other_slot is None:
        return None
    conflict_date = _shared_day(new_class, other)
    if conflict_date is None or not time_slots_overlap(new_slot, other_slot):
        return None
    return ScheduleConflict(
        existing=other, conflict_date=conflict_date, conflict_time=other_slot.label
    )


def _shared_day(first: ClassDefinition, second: ClassDefinition) -> str | None:
    """Return a label for the day both classes occupy, if any."""
    if not first.is_recurring and not second.is_recurring:
        first_date = parse_class_date(first.class_date)
        if first_date is not None and first_date == parse_class_date(second.class_date):
            return first_date.isoformat()
        return None
    if first.is_recurring and second.is_recurring:
        shared = [day for day in first.recurring_days if day in second.recurring_days]
        return ", ".join(shared) if shared else None
    one_time, recurring = (second, first) if first.is_recurring else (first, second)
    on = parse_class_date(one_time.class_date)
    if on is None:
        return None
    name = day_name(on)
    return name if name in recurring.recurring_days else None
