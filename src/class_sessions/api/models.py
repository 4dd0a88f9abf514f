"""Pydantic models for the class sessions API."""

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field

from class_sessions.domain.classes import Viewer


class ViewerPayload(BaseModel):
    """Signed-in participant."""

    model_config = ConfigDict(populate_by_name=True)

    id: str
    role: str
    first_name: str | None = Field(default=None, alias="firstName")
    last_name: str | None = Field(default=None, alias="lastName")
    username: str | None = None
    time_zone: str | None = Field(default=None, alias="timeZone")

    def to_domain(self) -> Viewer:
        return Viewer(
            id=self.id,
            role=self.role,
            first_name=self.first_name,
            last_name=self.last_name,
            username=self.username,
            time_zone=self.time_zone,
        )


class EligibilityRequest(BaseModel):
    """Class list to evaluate for one viewer."""

    viewer: ViewerPayload
    classes: list[dict[str, object]]
    now: datetime | None = None


class EligibilityItem(BaseModel):
    """Eligibility of one class."""

    class_id: str
    title: str
    status: str
    message: str
    can_join: bool
    minutes_until: int | None = None


class EligibilityResponse(BaseModel):
    """Eligibility of every requested class."""

    policy: str
    results: list[EligibilityItem]


class JoinRequest(BaseModel):
    """Join attempt for one class."""

    model_config = ConfigDict(populate_by_name=True)

    viewer: ViewerPayload
    class_item: dict[str, object] = Field(alias="class")


class JoinResponse(BaseModel):
    """Outcome of a join attempt."""

    status: str
    message: str
    can_join: bool
    canonical_class_id: str
    meeting_id: str | None = None
    meeting_url: str | None = None
    session_participant_id: str | None = None
    warnings: list[str] = Field(default_factory=list)
    error: str | None = None


class TimeConversionRequest(BaseModel):
    """A wall-clock time and the zone it is expressed in or converted to."""

    time: str
    zone: str
    on: date | None = None


class TimeConversionResponse(BaseModel):
    """Converted wall-clock time."""

    time: str


class AvailabilityRequest(BaseModel):
    """Weekly availability in a local zone."""

    zone: str
    availability: dict[str, dict[str, object]]


class ConflictRequest(BaseModel):
    """Proposed class checked against existing classes."""

    model_config = ConfigDict(populate_by_name=True)

    new_class: dict[str, object] = Field(alias="newClass")
    existing: list[dict[str, object]] = Field(default_factory=list)
    tutor_id: str | None = Field(default=None, alias="tutorId")
    student_ids: list[str] = Field(default_factory=list, alias="studentIds")
    exclude_class_id: str | None = Field(default=None, alias="excludeClassId")
    tutor_name: str | None = Field(default=None, alias="tutorName")
    student_names: dict[str, str] = Field(default_factory=dict, alias="studentNames")


class ConflictItem(BaseModel):
    """One detected collision."""

    class_id: str
    conflict_date: str
    conflict_time: str
    conflicting_students: list[str] = Field(default_factory=list)


class ConflictResponse(BaseModel):
    """Detected collisions and their messages."""

    has_conflict: bool
    tutor_conflicts: list[ConflictItem]
    student_conflicts: list[ConflictItem]
    messages: list[str]
