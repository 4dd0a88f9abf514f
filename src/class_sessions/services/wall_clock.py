"""Normalization of the polymorphic class start time."""

import logging
import re
from datetime import date, datetime, time, tzinfo

from dateutil import parser as date_parser

from class_sessions.domain.classes import (
    ClassDefinition,
    InvalidStartTime,
    IsoInstant,
    MissingStartTime,
    StartTime,
    WallClockTime,
)

_logger = logging.getLogger(__name__)

_WALL_CLOCK = re.compile(r"^\s*(\d{1,2}):(\d{2})\s*$")
MAX_HOUR = 23
MAX_MINUTE = 59


def classify_start_time(raw: str | None, default: datetime | None = None) -> StartTime:
    """Classify a raw start time once so callers never re-sniff the string.

    `default` supplies the missing fields when the generic parser is used for
    partial values such as "2:30 PM".
    """
    if raw is None or not raw.strip():
        return MissingStartTime()

    match = _WALL_CLOCK.match(raw)
    if match:
        hour, minute = int(match.group(1)), int(match.group(2))
        if hour > MAX_HOUR or minute > MAX_MINUTE:
            return InvalidStartTime(raw)
        return WallClockTime(hour=hour, minute=minute)

    text = raw.strip()
    try:
        return IsoInstant(datetime.fromisoformat(text))
    except ValueError:
        pass
    try:
        return IsoInstant(date_parser.parse(text, default=default))
    except (ValueError, OverflowError):
        return InvalidStartTime(raw)


def parse_class_date(raw: str | None) -> date | None:
    """Return the calendar date of a `classDate` value, if it has one."""
    if raw is None or not raw.strip():
        return None
    text = raw.strip()
    try:
        return date.fromisoformat(text[:10])
    except ValueError:
        pass
    try:
        return date_parser.parse(text).date()
    except (ValueError, OverflowError):
        _logger.warning("Unparsable class date: %s", raw)
        return None


def parse_start(class_item: ClassDefinition, now: datetime) -> datetime | None:
    """Return the class start as a local instant, or None when invalid.

    Bare "HH:MM" values are anchored to the class date, or to `now`'s date when
    the class has none. The result carries `now`'s tzinfo.
    """
    class_date = parse_class_date(class_item.class_date)
    anchor = class_date or now.date()
    start = classify_start_time(
        class_item.start_time, default=datetime.combine(anchor, time())
    )

    if isinstance(start, WallClockTime):
        return datetime.combine(
            anchor, time(start.hour, start.minute), tzinfo=now.tzinfo
        )
    if isinstance(start, IsoInstant):
        return to_local(start.value, now.tzinfo)
    if isinstance(start, InvalidStartTime):
        _logger.warning(
            "Unparsable start time: class_id=%s start_time=%s",
            class_item.id,
            start.raw,
        )
        if _WALL_CLOCK.match(start.raw):
            return None

    if class_date is not None:
        return datetime.combine(class_date, time(), tzinfo=now.tzinfo)
    return None


def to_local(value: datetime, tz: tzinfo | None) -> datetime:
    """Express `value` in `tz`; naive values are taken to already be local."""
    if value.tzinfo is None:
        return value.replace(tzinfo=tz)
    if tz is None:
        return value.astimezone().replace(tzinfo=None)
    return value.astimezone(tz)
