"""Tests for occurrence resolution."""

from datetime import date, datetime

from class_sessions.domain.classes import ClassDefinition
from class_sessions.domain.eligibility import GENERIC_POLICY, INVALID_OCCURRENCE
from class_sessions.services.occurrences import (
    OccurrenceResolver,
    class_duration,
    next_recurrence_day,
)
from tests.conftest import one_time_class, recurring_class

TUESDAY = datetime(2025, 6, 10, 8, 0)
WEDNESDAY = datetime(2025, 6, 11, 8, 0)


def test_one_time_occurrence_today() -> None:
    class_item = ClassDefinition.from_payload(one_time_class())

    occurrence = OccurrenceResolver().resolve(class_item, TUESDAY)

    assert occurrence.start == datetime(2025, 6, 10, 14, 0)
    assert occurrence.end == datetime(2025, 6, 10, 15, 0)
    assert occurrence.exists_today is True
    assert occurrence.is_valid


def test_one_time_occurrence_on_another_day() -> None:
    class_item = ClassDefinition.from_payload(one_time_class(classDate="2025-06-12"))

    occurrence = OccurrenceResolver().resolve(class_item, TUESDAY)

    assert occurrence.exists_today is False
    assert occurrence.start == datetime(2025, 6, 12, 14, 0)


def test_one_time_iso_start_without_class_date() -> None:
    class_item = ClassDefinition.from_payload(
        one_time_class(classDate=None, startTime="2025-06-10T16:00:00")
    )

    occurrence = OccurrenceResolver().resolve(class_item, TUESDAY)

    assert occurrence.exists_today is True
    assert occurrence.start == datetime(2025, 6, 10, 16, 0)


def test_invalid_start_resolves_to_sentinel() -> None:
    class_item = ClassDefinition.from_payload(one_time_class(startTime="99:99"))

    assert OccurrenceResolver().resolve(class_item, TUESDAY) == INVALID_OCCURRENCE


def test_recurring_on_recurrence_day() -> None:
    class_item = ClassDefinition.from_payload(recurring_class())

    occurrence = OccurrenceResolver().resolve(class_item, WEDNESDAY)

    assert occurrence.exists_today is True
    assert occurrence.start == datetime(2025, 6, 11, 9, 0)
    assert occurrence.end == datetime(2025, 6, 11, 9, 45)


def test_recurring_off_day_names_next_day() -> None:
    class_item = ClassDefinition.from_payload(recurring_class())

    occurrence = OccurrenceResolver().resolve(class_item, TUESDAY)

    assert occurrence.exists_today is False
    assert occurrence.start is None
    assert occurrence.next_day == "wednesday"


def test_recurring_without_usable_time_is_today_but_invalid() -> None:
    class_item = ClassDefinition.from_payload(recurring_class(startTime="later"))

    occurrence = OccurrenceResolver().resolve(class_item, WEDNESDAY)

    assert occurrence.exists_today is True
    assert not occurrence.is_valid


def test_next_recurrence_day_scans_a_week() -> None:
    tuesday = date(2025, 6, 10)

    assert next_recurrence_day(("monday",), tuesday) == "monday"
    assert next_recurrence_day(("tuesday",), tuesday) == "tuesday"
    assert next_recurrence_day(("funday",), tuesday) is None
    assert next_recurrence_day((), tuesday) is None


def test_class_duration_only_defaults_when_missing() -> None:
    assert class_duration(ClassDefinition(id="a", title="A")) == 60
    assert class_duration(ClassDefinition(id="a", title="A", duration=30)) == 30
    assert (
        class_duration(
            ClassDefinition(id="a", title="A", duration=30, custom_duration=90)
        )
        == 90
    )
    assert class_duration(ClassDefinition(id="a", title="A", duration=0)) == 0


def test_window_uses_policy_sizes() -> None:
    resolver = OccurrenceResolver()
    class_item = ClassDefinition.from_payload(one_time_class())
    occurrence = resolver.resolve(class_item, TUESDAY)

    window = resolver.window(occurrence, GENERIC_POLICY)

    assert window is not None
    assert window.opens_at == datetime(2025, 6, 10, 13, 45)
    assert window.grace_ends_at == datetime(2025, 6, 10, 15, 30)
    assert resolver.window(INVALID_OCCURRENCE, GENERIC_POLICY) is None


def test_is_today_groups_by_calendar_date() -> None:
    resolver = OccurrenceResolver()

    assert resolver.is_today(ClassDefinition.from_payload(one_time_class()), TUESDAY)
    assert not resolver.is_today(
        ClassDefinition.from_payload(recurring_class()), TUESDAY
    )
