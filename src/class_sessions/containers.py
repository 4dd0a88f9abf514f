"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import create_client

from class_sessions.adapters.platform_client import HttpxPlatformClient, PlatformClient
from class_sessions.adapters.supabase_join_context_repository import (
    SupabaseJoinContextRepository,
)
from class_sessions.config import Settings, build_policies
from class_sessions.domain.classes import Viewer
from class_sessions.domain.eligibility import EligibilityPolicy
from class_sessions.services.clock import Clock, SystemClock
from class_sessions.services.eligibility import JoinEligibilityEngine
from class_sessions.services.joins import (
    JoinContextRepository,
    SessionJoinOrchestrator,
)
from class_sessions.services.occurrences import OccurrenceResolver
from class_sessions.services.ticker import EligibilityTicker, Evaluations
from class_sessions.services.timezones import resolve_zone


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    clock: Clock
    policies: dict[str, EligibilityPolicy]
    eligibility_engine: JoinEligibilityEngine
    platform_client: PlatformClient
    context_repository: JoinContextRepository
    close_resources: Callable[[], Awaitable[None]]

    def engine_for(self, policy_name: str) -> JoinEligibilityEngine:
        """Return the eligibility engine for a named policy.

        Raises KeyError for unknown policy names.
        """
        return self.eligibility_engine.with_policy(self.policies[policy_name])

    def orchestrator_for(self, policy_name: str) -> SessionJoinOrchestrator:
        """Return a join orchestrator evaluating under a named policy."""
        return SessionJoinOrchestrator(
            engine=self.engine_for(policy_name),
            platform_client=self.platform_client,
            context_repository=self.context_repository,
            meeting_base_url=self.settings.meeting_base_url,
            meeting_platform=self.settings.meeting_platform,
        )

    def ticker_for(
        self,
        viewer: Viewer,
        on_update: Callable[[Evaluations], None],
        policy_name: str = "generic",
        interval_seconds: float = 60.0,
    ) -> EligibilityTicker:
        """Return a ticker re-evaluating a viewer's classes under a named policy."""
        return EligibilityTicker(
            engine=self.engine_for(policy_name),
            viewer=viewer,
            on_update=on_update,
            interval_seconds=interval_seconds,
        )


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    context_repository = SupabaseJoinContextRepository(supabase_client)
    platform_client = HttpxPlatformClient.create(
        base_url=resolved_settings.platform_base_url,
        timeout_seconds=resolved_settings.http_timeout_seconds,
    )
    clock = SystemClock(resolve_zone(resolved_settings.default_timezone))
    policies = build_policies(resolved_settings)
    engine = JoinEligibilityEngine(
        clock=clock,
        resolver=OccurrenceResolver(),
        policy=policies["generic"],
    )

    async def close_resources() -> None:
        await platform_client.close()

    return AppContainer(
        settings=resolved_settings,
        clock=clock,
        policies=policies,
        eligibility_engine=engine,
        platform_client=platform_client,
        context_repository=context_repository,
        close_resources=close_resources,
    )
