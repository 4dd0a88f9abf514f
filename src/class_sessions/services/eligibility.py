"""Join eligibility state machine for class sessions."""

import logging
import math
from dataclasses import dataclass, field
from datetime import datetime

from class_sessions.domain.classes import ClassDefinition, Viewer
from class_sessions.domain.eligibility import (
    GENERIC_POLICY,
    EligibilityPolicy,
    EligibilityResult,
    EligibilityStatus,
    ResolvedOccurrence,
)
from class_sessions.services.clock import Clock
from class_sessions.services.occurrences import OccurrenceResolver
from class_sessions.services.timezones import resolve_zone

_logger = logging.getLogger(__name__)


@dataclass
class JoinEligibilityEngine:
    """Evaluates whether a viewer may join a class right now.

    Rules, first match wins:
    1) status cancelled                        => cancelled
    2) status completed                        => completed
    3) viewer not assigned                     => not-assigned
    4) recurring and not a recurrence day      => not-today
    5) one-time under an always-joinable policy => can-join
    6) occurrence unresolvable                 => error
    7) before the window opens                 => too-early
    8) window open, class not started          => can-join
    9) class running                           => in-progress
    10) inside the grace period                => ending
    11) otherwise                              => ended

    Every call reads a fresh "now" from the clock; nothing is cached.
    """

    clock: Clock
    resolver: OccurrenceResolver = field(default_factory=OccurrenceResolver)
    policy: EligibilityPolicy = GENERIC_POLICY

    def with_policy(self, policy: EligibilityPolicy) -> "JoinEligibilityEngine":
        """Return an engine sharing this clock but applying `policy`."""
        return JoinEligibilityEngine(
            clock=self.clock, resolver=self.resolver, policy=policy
        )

    def now_for(self, viewer: Viewer) -> datetime:
        """Return the current instant in the viewer's zone when known."""
        now = self.clock()
        if not viewer.time_zone:
            return now
        try:
            return now.astimezone(resolve_zone(viewer.time_zone))
        except ValueError:
            _logger.warning(
                "Unknown viewer time zone: viewer_id=%s zone=%s",
                viewer.id,
                viewer.time_zone,
            )
            return now

    def evaluate(
        self, class_item: ClassDefinition, viewer: Viewer
    ) -> EligibilityResult:
        """Evaluate one class for one viewer. Never raises."""
        try:
            return self._evaluate(class_item, viewer, self.now_for(viewer))
        except Exception:
            _logger.exception(
                "Eligibility evaluation failed: class_id=%s", class_item.id
            )
            return EligibilityResult(EligibilityStatus.UNKNOWN, "Status unknown")

    def evaluate_many(
        self, classes: list[ClassDefinition], viewer: Viewer
    ) -> list[tuple[ClassDefinition, EligibilityResult]]:
        """Evaluate a class list against a single fresh instant."""
        try:
            now = self.now_for(viewer)
        except Exception:
            _logger.exception("Clock failure while evaluating class list")
            return [
                (item, EligibilityResult(EligibilityStatus.UNKNOWN, "Status unknown"))
                for item in classes
            ]
        results = []
        for class_item in classes:
            try:
                result = self._evaluate(class_item, viewer, now)
            except Exception:
                _logger.exception(
                    "Eligibility evaluation failed: class_id=%s", class_item.id
                )
                result = EligibilityResult(EligibilityStatus.UNKNOWN, "Status unknown")
            results.append((class_item, result))
        return results

    def _evaluate(  # noqa: PLR0911
        self, class_item: ClassDefinition, viewer: Viewer, now: datetime
    ) -> EligibilityResult:
        if class_item.status == "cancelled":
            return EligibilityResult(
                EligibilityStatus.CANCELLED, "This class has been cancelled"
            )
        if class_item.status == "completed":
            return EligibilityResult(
                EligibilityStatus.COMPLETED, "This class has been completed"
            )
        if not is_assigned(class_item, viewer):
            return EligibilityResult(
                EligibilityStatus.NOT_ASSIGNED, "You are not assigned to this class"
            )

        occurrence = self.resolver.resolve(class_item, now)
        if class_item.is_recurring and not occurrence.exists_today:
            return _not_today(occurrence)
        if not class_item.is_recurring and self.policy.one_time_always_joinable:
            return EligibilityResult(
                EligibilityStatus.CAN_JOIN, "You can join this class"
            )

        window = self.resolver.window(occurrence, self.policy)
        if window is None:
            return EligibilityResult(EligibilityStatus.ERROR, "Invalid class time")

        if now < window.opens_at:
            minutes = _minutes_between(now, window.opens_at)
            return EligibilityResult(
                EligibilityStatus.TOO_EARLY,
                f"Join available in {minutes} minutes",
                minutes_until=minutes,
            )
        if now < window.starts_at:
            minutes = _minutes_between(now, window.starts_at)
            return EligibilityResult(
                EligibilityStatus.CAN_JOIN,
                f"Class starts in {minutes} minutes",
                minutes_until=minutes,
            )
        if now <= window.class_ends_at:
            minutes_left = _minutes_between(now, window.class_ends_at)
            return EligibilityResult(
                EligibilityStatus.IN_PROGRESS,
                f"Class in progress ({minutes_left} min left)",
            )
        if now <= window.grace_ends_at:
            return EligibilityResult(
                EligibilityStatus.ENDING,
                "Class time ended, but meeting still available",
            )
        return EligibilityResult(EligibilityStatus.ENDED, "Class has ended")


def is_assigned(class_item: ClassDefinition, viewer: Viewer) -> bool:
    """Return True when the viewer takes part in the class."""
    if viewer.role == "admin":
        return True
    if viewer.role == "tutor":
        return class_item.tutor_id is not None and class_item.tutor_id == viewer.id
    # Student dashboards receive only their own classes, often without rosters.
    return not class_item.student_ids or viewer.id in class_item.student_ids


def _not_today(occurrence: ResolvedOccurrence) -> EligibilityResult:
    if occurrence.next_day:
        message = f"Next class: {occurrence.next_day.capitalize()}"
    else:
        message = "No upcoming classes this week"
    return EligibilityResult(EligibilityStatus.NOT_TODAY, message)


def _minutes_between(earlier: datetime, later: datetime) -> int:
    return math.ceil((later - earlier).total_seconds() / 60)
