"""Resolution of a class definition into today's concrete occurrence."""

import logging
from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

from class_sessions.domain.classes import (
    DAY_NAMES,
    ClassDefinition,
    IsoInstant,
    WallClockTime,
)
from class_sessions.domain.eligibility import (
    INVALID_OCCURRENCE,
    EligibilityPolicy,
    JoinWindow,
    ResolvedOccurrence,
)
from class_sessions.services.wall_clock import (
    classify_start_time,
    parse_class_date,
    parse_start,
    to_local,
)

_logger = logging.getLogger(__name__)

DEFAULT_DURATION_MINUTES = 60
DAYS_IN_WEEK = 7


def day_name(day: date) -> str:
    """Return the lowercase English weekday name."""
    return DAY_NAMES[day.weekday()]


def class_duration(class_item: ClassDefinition) -> int:
    """Return the effective duration in minutes; only a missing value defaults."""
    if class_item.custom_duration is not None:
        return class_item.custom_duration
    if class_item.duration is not None:
        return class_item.duration
    return DEFAULT_DURATION_MINUTES


def next_recurrence_day(recurring_days: tuple[str, ...], today: date) -> str | None:
    """Scan the seven days after `today` for the first recurrence day."""
    wanted = {day.strip().lower() for day in recurring_days}
    for offset in range(1, DAYS_IN_WEEK + 1):
        candidate = day_name(today + timedelta(days=offset))
        if candidate in wanted:
            return candidate
    return None


@dataclass(frozen=True)
class OccurrenceResolver:
    """Decides whether a class happens today and when it starts and ends."""

    def resolve(self, class_item: ClassDefinition, now: datetime) -> ResolvedOccurrence:
        """Resolve the occurrence of `class_item` relevant to `now`."""
        if class_item.is_recurring:
            return self._resolve_recurring(class_item, now)
        return self._resolve_one_time(class_item, now)

    def window(
        self, occurrence: ResolvedOccurrence, policy: EligibilityPolicy
    ) -> JoinWindow | None:
        """Return the join window of a valid occurrence."""
        if occurrence.start is None or occurrence.end is None:
            return None
        return JoinWindow.around(occurrence.start, occurrence.end, policy)

    def is_today(self, class_item: ClassDefinition, now: datetime) -> bool:
        """Return True when the class belongs in today's group."""
        return self.resolve(class_item, now).exists_today

    def _resolve_one_time(
        self, class_item: ClassDefinition, now: datetime
    ) -> ResolvedOccurrence:
        start = parse_start(class_item, now)
        if start is None:
            return INVALID_OCCURRENCE
        end = start + timedelta(minutes=class_duration(class_item))
        occurs_on = parse_class_date(class_item.class_date) or start.date()
        return ResolvedOccurrence(
            start=start, end=end, exists_today=occurs_on == now.date()
        )

    def _resolve_recurring(
        self, class_item: ClassDefinition, now: datetime
    ) -> ResolvedOccurrence:
        today = now.date()
        days = {day.strip().lower() for day in class_item.recurring_days}
        if day_name(today) not in days:
            return ResolvedOccurrence(
                start=None,
                end=None,
                exists_today=False,
                next_day=next_recurrence_day(class_item.recurring_days, today),
            )

        recurrence = _recurrence_time(class_item, now)
        if recurrence is None:
            _logger.warning(
                "Recurring class without a usable time: class_id=%s start_time=%s",
                class_item.id,
                class_item.start_time,
            )
            return ResolvedOccurrence(start=None, end=None, exists_today=True)
        start = datetime.combine(today, recurrence, tzinfo=now.tzinfo)
        end = start + timedelta(minutes=class_duration(class_item))
        return ResolvedOccurrence(start=start, end=end, exists_today=True)


def _recurrence_time(class_item: ClassDefinition, now: datetime) -> time | None:
    start = classify_start_time(class_item.start_time)
    if isinstance(start, WallClockTime):
        return time(start.hour, start.minute)
    if isinstance(start, IsoInstant):
        local = to_local(start.value, now.tzinfo)
        return time(local.hour, local.minute)
    return None
