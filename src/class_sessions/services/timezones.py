"""Conversion of "HH:MM" wall-clock values between time zones and UTC."""

import logging
import re
from collections.abc import Mapping
from datetime import UTC, date, datetime, time, timedelta, timezone, tzinfo
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

_logger = logging.getLogger(__name__)

# A date with no DST transition in the northern hemisphere.
REFERENCE_DATE = date(2000, 1, 1)
MINUTES_PER_DAY = 24 * 60

_HHMM = re.compile(r"^\s*(\d{1,2}):(\d{2})(?::\d{2})?\s*$")

# Abbreviations offered by the platform's profile forms, as fixed offsets.
_ABBREVIATION_OFFSETS = {
    "UTC": (0, 0),
    "GMT": (0, 0),
    "EST": (-5, 0),
    "EDT": (-4, 0),
    "CST": (-6, 0),
    "CDT": (-5, 0),
    "MST": (-7, 0),
    "MDT": (-6, 0),
    "PST": (-8, 0),
    "PDT": (-7, 0),
    "IST": (5, 30),
    "BST": (1, 0),
    "CET": (1, 0),
    "CEST": (2, 0),
    "EET": (2, 0),
    "EEST": (3, 0),
    "JST": (9, 0),
    "AEST": (10, 0),
    "AEDT": (11, 0),
    "ACST": (9, 30),
    "ACDT": (10, 30),
    "AWST": (8, 0),
    "KST": (9, 0),
    "HKT": (8, 0),
    "SGT": (8, 0),
    "MSK": (3, 0),
}

ZONE_ABBREVIATIONS = tuple(_ABBREVIATION_OFFSETS)


def resolve_zone(name: str) -> tzinfo:
    """Return tzinfo for an abbreviation or IANA name.

    Raises ValueError when the name is unknown.
    """
    key = name.strip()
    offset = _ABBREVIATION_OFFSETS.get(key.upper())
    if offset is not None:
        hours, minutes = offset
        sign = -1 if hours < 0 else 1
        return timezone(
            sign * timedelta(hours=abs(hours), minutes=minutes), name=key.upper()
        )
    try:
        return ZoneInfo(key)
    except (ZoneInfoNotFoundError, ValueError) as exc:
        raise ValueError(f"Unknown time zone: {name}") from exc


def hhmm_to_minutes(value: str) -> int:
    """Convert "HH:MM" to minutes after midnight. Raises ValueError."""
    match = _HHMM.match(value)
    if not match:
        raise ValueError(f"Invalid time: {value}")
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:  # noqa: PLR2004
        raise ValueError(f"Invalid time: {value}")
    return hours * 60 + minutes


def minutes_to_hhmm(minutes: int) -> str:
    """Convert minutes after midnight to "HH:MM", wrapping around the day."""
    minutes %= MINUTES_PER_DAY
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def utc_to_zone(value: str, zone: str, on: date | None = None) -> str:
    """Render a UTC "HH:MM" as the wall-clock time in `zone`.

    Returns `value` unchanged when the input or zone cannot be understood.
    """
    if not value or not zone:
        return value
    try:
        minutes = hhmm_to_minutes(value)
        tz = resolve_zone(zone)
    except ValueError:
        _logger.warning("Time zone conversion failed: time=%s zone=%s", value, zone)
        return value
    instant = datetime.combine(
        on or REFERENCE_DATE, time(minutes // 60, minutes % 60), tzinfo=UTC
    )
    return instant.astimezone(tz).strftime("%H:%M")


def zone_to_utc(value: str, zone: str, on: date | None = None) -> str:
    """Convert a wall-clock "HH:MM" in `zone` to the equivalent UTC "HH:MM".

    Without `on` the zone offset is discovered on the reference date by
    rendering the nominal instant in `zone` and diffing. With `on`, the offset
    in force on that date is used: ambiguous times take the first occurrence
    and nonexistent times the offset from before the transition.
    Returns `value` unchanged when the input or zone cannot be understood.
    """
    if not value or not zone:
        return value
    try:
        minutes = hhmm_to_minutes(value)
        tz = resolve_zone(zone)
    except ValueError:
        _logger.warning("UTC conversion failed: time=%s zone=%s", value, zone)
        return value

    if on is not None:
        local = datetime.combine(on, time(minutes // 60, minutes % 60), tzinfo=tz)
        return local.astimezone(UTC).strftime("%H:%M")

    nominal = datetime.combine(
        REFERENCE_DATE, time(minutes // 60, minutes % 60), tzinfo=UTC
    )
    rendered = nominal.astimezone(tz)
    offset = rendered.replace(tzinfo=None) - nominal.replace(tzinfo=None)
    offset_minutes = int(offset.total_seconds() // 60)
    return minutes_to_hhmm(minutes - offset_minutes)


def availability_to_utc(
    availability: Mapping[str, Mapping[str, object]], zone: str
) -> dict[str, dict[str, object]]:
    """Attach UTC equivalents to each slot of a weekly availability map.

    Input shape: {day: {"available": bool, "timeSlots": [{"startTime",
    "endTime"}]}}. Each day gains "timeSlotsZones" holding both the UTC and
    the local values.
    """
    result: dict[str, dict[str, object]] = {}
    for day, data in availability.items():
        slots = data.get("timeSlots") or []
        if not isinstance(slots, list):
            slots = []
        zones = []
        for slot in slots:
            if not isinstance(slot, Mapping):
                continue
            start = str(slot.get("startTime") or "")
            end = str(slot.get("endTime") or "")
            zones.append(
                {
                    "startTimeUTC": zone_to_utc(start, zone) if start else "",
                    "endTimeUTC": zone_to_utc(end, zone) if end else "",
                    "startTimeLocal": start,
                    "endTimeLocal": end,
                }
            )
        result[day.lower()] = {
            **dict(data),
            "available": bool(data.get("available", False)),
            "timeSlots": list(slots),
            "timeSlotsZones": zones,
        }
    return result
