"""Domain models for join attempts."""

from dataclasses import dataclass, field
from datetime import datetime

from class_sessions.domain.eligibility import EligibilityResult

# Keys read back by the meeting surface after it opens.
MEETING_CLASS_ID_KEY = "meeting_class_id"
SESSION_PARTICIPANT_ID_KEY = "sessionParticipantId"
CLASS_TITLE_KEY = "classTitle"
CLASS_START_TIME_KEY = "classStartTime"
CLASS_DURATION_KEY = "classDuration"


@dataclass(frozen=True)
class SessionParticipationRecord:
    """A registered join, mirrored locally for the meeting surface."""

    meeting_class_id: str
    session_participant_id: str | None
    title: str
    start_time: str
    duration: str
    joined_at: datetime

    def context_values(self) -> dict[str, str]:
        """Return the persisted join-context keys, skipping empty values."""
        values = {
            MEETING_CLASS_ID_KEY: self.meeting_class_id,
            SESSION_PARTICIPANT_ID_KEY: self.session_participant_id or "",
            CLASS_TITLE_KEY: self.title,
            CLASS_START_TIME_KEY: self.start_time,
            CLASS_DURATION_KEY: self.duration,
        }
        return {key: value for key, value in values.items() if value}


@dataclass
class JoinOutcome:
    """Result of a join attempt: where to navigate plus what went wrong."""

    eligibility: EligibilityResult
    canonical_class_id: str
    meeting_id: str | None = None
    meeting_url: str | None = None
    registration: SessionParticipationRecord | None = None
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def opened(self) -> bool:
        return self.meeting_url is not None and self.error is None
