"""Join protocol: verify, register, persist context, build the meeting URL."""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol
from urllib.parse import quote, urlencode

import httpx

from class_sessions.adapters.platform_client import PlatformClient
from class_sessions.domain.classes import ClassDefinition, Viewer
from class_sessions.domain.participation import JoinOutcome, SessionParticipationRecord
from class_sessions.services.eligibility import JoinEligibilityEngine
from class_sessions.services.occurrences import class_duration

_logger = logging.getLogger(__name__)

_MEETING_PREFIXES = ("class-", "session-")


class JoinContextRepository(Protocol):
    """Persistence interface for the context handed to the meeting surface."""

    def save_participation(
        self, viewer_id: str, record: SessionParticipationRecord
    ) -> None:
        """Store a join record; the latest record wins."""

    def get_context(self, viewer_id: str) -> dict[str, str]:
        """Return the latest join-context keys for a viewer."""


def normalize_meeting_id(raw: str) -> str:
    """Prefix a meeting id with `class-` unless it already has a known prefix."""
    if raw.startswith(_MEETING_PREFIXES):
        return raw
    return f"class-{raw}"


def resolve_meeting_id(
    class_item: ClassDefinition,
    meeting_id: str | None = None,
    meeting_link: str | None = None,
) -> str | None:
    """Pick the meeting identifier for a class, normalized."""
    candidate = meeting_id or class_item.meeting_id
    if not candidate:
        link = meeting_link or class_item.meeting_link
        if link:
            candidate = link.split("?", 1)[0].rstrip("/").rsplit("/", 1)[-1]
    if not candidate:
        candidate = class_item.id
    if not candidate:
        return None
    return normalize_meeting_id(candidate)


def build_meeting_url(
    meeting_id: str, viewer: Viewer, class_id: str, base_url: str = ""
) -> str:
    """Build the role-parameterized meeting URL."""
    query = urlencode(
        {
            "userName": viewer.display_name,
            "userId": viewer.id,
            "role": viewer.role,
            "classId": class_id,
            "displayClean": "true",
        },
        quote_via=quote,
    )
    return f"{base_url.rstrip('/')}/meeting/{quote(meeting_id, safe='')}?{query}"


@dataclass
class SessionJoinOrchestrator:
    """Turns an eligible class into a meeting URL and a registered join.

    Network steps are best-effort: a failed dashboard refresh, session check
    or participation call adds a warning but never blocks the join. Only a
    missing meeting identifier stops it.
    """

    engine: JoinEligibilityEngine
    platform_client: PlatformClient
    context_repository: JoinContextRepository
    meeting_base_url: str = ""
    meeting_platform: str = "agora"

    async def join(
        self,
        class_item: ClassDefinition,
        viewer: Viewer,
        token: str | None = None,
    ) -> JoinOutcome:
        """Attempt to join `class_item` as `viewer`."""
        eligibility = self.engine.evaluate(class_item, viewer)
        outcome = JoinOutcome(eligibility=eligibility, canonical_class_id=class_item.id)
        if not eligibility.can_join:
            outcome.error = f"Cannot join class: {eligibility.message}"
            _logger.info(
                "Join refused: class_id=%s viewer_id=%s status=%s",
                class_item.id,
                viewer.id,
                eligibility.status,
            )
            return outcome

        try:
            await self._join_online(class_item, viewer, token, outcome)
        except Exception as exc:
            _logger.exception("Join failed, using in-memory class data")
            outcome.warnings.append(f"Join degraded to cached class data: {exc}")
            await self._finish_offline(class_item, viewer, token, outcome)
        return outcome

    async def ensure_session(
        self, class_item: ClassDefinition, token: str | None = None
    ) -> dict[str, object] | None:
        """Return the class's first session, creating one when none exists."""
        sessions = await self.platform_client.list_sessions(class_item.id, token)
        if sessions:
            return sessions[0]
        created = await self.platform_client.create_session(
            {"classId": class_item.id, "meetingPlatform": self.meeting_platform},
            token,
        )
        session = created.get("session")
        return session if isinstance(session, dict) else created

    async def _join_online(
        self,
        class_item: ClassDefinition,
        viewer: Viewer,
        token: str | None,
        outcome: JoinOutcome,
    ) -> None:
        meeting_id, meeting_link = await self._fresh_meeting_data(
            class_item, viewer, token, outcome
        )
        outcome.meeting_id = resolve_meeting_id(class_item, meeting_id, meeting_link)
        if outcome.meeting_id is None:
            outcome.error = _no_meeting_error(class_item)
            return

        if viewer.role in {"tutor", "admin"}:
            try:
                await self.ensure_session(class_item, token)
            except httpx.HTTPError as exc:
                _logger.warning(
                    "Session check failed: class_id=%s error=%s", class_item.id, exc
                )
                outcome.warnings.append(f"Session check failed: {exc}")

        await self._register(class_item, viewer, token, outcome)
        outcome.meeting_url = build_meeting_url(
            outcome.meeting_id,
            viewer,
            outcome.canonical_class_id,
            self.meeting_base_url,
        )
        _logger.info(
            "Join prepared: class_id=%s viewer_id=%s meeting_id=%s",
            outcome.canonical_class_id,
            viewer.id,
            outcome.meeting_id,
        )

    async def _finish_offline(
        self,
        class_item: ClassDefinition,
        viewer: Viewer,
        token: str | None,
        outcome: JoinOutcome,
    ) -> None:
        """Rerun meeting resolution, registration and URL building from memory."""
        outcome.canonical_class_id = class_item.id
        outcome.registration = None
        outcome.meeting_url = None
        outcome.meeting_id = resolve_meeting_id(class_item)
        if outcome.meeting_id is None:
            outcome.error = _no_meeting_error(class_item)
            return
        outcome.error = None
        try:
            await self._register(class_item, viewer, token, outcome)
        except Exception as exc:
            _logger.exception(
                "Fallback participation registration failed: class_id=%s",
                class_item.id,
            )
            outcome.warnings.append(f"Participation not recorded: {exc}")
        outcome.meeting_url = build_meeting_url(
            outcome.meeting_id,
            viewer,
            outcome.canonical_class_id,
            self.meeting_base_url,
        )

    async def _fresh_meeting_data(
        self,
        class_item: ClassDefinition,
        viewer: Viewer,
        token: str | None,
        outcome: JoinOutcome,
    ) -> tuple[str | None, str | None]:
        meeting_id, meeting_link = class_item.meeting_id, class_item.meeting_link
        try:
            classes = await self.platform_client.dashboard_classes(viewer.role, token)
        except httpx.HTTPError as exc:
            _logger.warning(
                "Dashboard refresh failed: class_id=%s error=%s", class_item.id, exc
            )
            outcome.warnings.append(f"Using cached meeting data: {exc}")
            return meeting_id, meeting_link
        for entry in classes:
            if not isinstance(entry, Mapping):
                continue
            if str(entry.get("id") or entry.get("_id") or "") != class_item.id:
                continue
            meeting_id = _optional_str(entry.get("meetingId")) or meeting_id
            meeting_link = _optional_str(entry.get("meetingLink")) or meeting_link
            break
        return meeting_id, meeting_link

    async def _register(
        self,
        class_item: ClassDefinition,
        viewer: Viewer,
        token: str | None,
        outcome: JoinOutcome,
    ) -> None:
        payload: dict[str, object] = {
            "meeting_class_id": class_item.id or outcome.meeting_id,
            "title": class_item.display_title,
            "start_time": class_item.start_time,
            "duration": class_duration(class_item),
        }
        try:
            response = await self.platform_client.join_session(payload, token)
        except httpx.HTTPError as exc:
            _logger.warning(
                "Participation registration failed: class_id=%s error=%s",
                class_item.id,
                exc,
            )
            outcome.warnings.append(f"Participation not recorded: {exc}")
            return

        record = _participation_record(
            class_item, outcome, response, joined_at=self.engine.clock()
        )
        outcome.canonical_class_id = record.meeting_class_id
        outcome.registration = record
        try:
            self.context_repository.save_participation(viewer.id, record)
        except Exception as exc:
            _logger.warning("Join context not persisted: error=%s", exc)
            outcome.warnings.append(f"Join context not persisted: {exc}")


def _participation_record(
    class_item: ClassDefinition,
    outcome: JoinOutcome,
    response: Mapping[str, object],
    joined_at: datetime,
) -> SessionParticipationRecord:
    data = response.get("data")
    data = data if isinstance(data, Mapping) else {}
    canonical = (
        _optional_str(data.get("meeting_class_id"))
        or _optional_str(data.get("meetingClassId"))
        or class_item.id
        or outcome.meeting_id
        or ""
    )
    participant_id = _optional_str(response.get("sessionParticipantId")) or (
        _optional_str(data.get("id"))
    )
    duration = data.get("duration")
    if duration is None:
        duration = class_duration(class_item)
    return SessionParticipationRecord(
        meeting_class_id=canonical,
        session_participant_id=participant_id,
        title=_optional_str(data.get("title")) or class_item.display_title,
        start_time=_optional_str(data.get("start_time")) or class_item.start_time or "",
        duration=str(duration),
        joined_at=joined_at,
    )


def _no_meeting_error(class_item: ClassDefinition) -> str:
    return (
        f"No meeting session found for {class_item.display_title}. "
        "Please create a meeting session first or contact your administrator."
    )


def _optional_str(value: object) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    if not text or text == "undefined":
        return None
    return text
