"""Supabase-backed store for join records and the meeting join context."""

from dataclasses import dataclass

from supabase import Client

from class_sessions.domain.participation import SessionParticipationRecord
from class_sessions.services.joins import JoinContextRepository


@dataclass
class SupabaseJoinContextRepository(JoinContextRepository):
    """Supabase implementation for session participation records."""

    client: Client

    def save_participation(
        self, viewer_id: str, record: SessionParticipationRecord
    ) -> None:
        """Insert a participation row carrying its join context."""
        response = (
            self.client.table("session_participations")
            .insert(
                {
                    "viewer_id": viewer_id,
                    "meeting_class_id": record.meeting_class_id,
                    "session_participant_id": record.session_participant_id,
                    "title": record.title,
                    "start_time": record.start_time,
                    "duration": record.duration,
                    "joined_at": record.joined_at.isoformat(),
                    "context_json": record.context_values(),
                }
            )
            .execute()
        )
        if not response.data:
            raise RuntimeError("Failed to save session participation")

    def get_context(self, viewer_id: str) -> dict[str, str]:
        """Return the context of the viewer's most recent join."""
        response = (
            self.client.table("session_participations")
            .select("context_json")
            .eq("viewer_id", viewer_id)
            .order("joined_at", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return {}
        context = response.data[0].get("context_json") or {}
        return {str(key): str(value) for key, value in context.items()}
