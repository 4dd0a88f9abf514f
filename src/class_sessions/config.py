"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from class_sessions.domain.eligibility import POLICIES, EligibilityPolicy

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    platform_base_url: str
    supabase_url: str
    supabase_service_key: str
    meeting_base_url: str = ""
    meeting_platform: str = "agora"
    default_timezone: str = "UTC"
    pre_join_minutes: int = 15
    grace_minutes: int = 30
    http_timeout_seconds: float = 10.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def build_policies(settings: Settings) -> dict[str, EligibilityPolicy]:
    """Return the named policies with configured window sizes applied."""
    return {
        name: EligibilityPolicy(
            name=name,
            pre_join_minutes=settings.pre_join_minutes,
            grace_minutes=settings.grace_minutes if policy.grace_minutes else 0,
            one_time_always_joinable=policy.one_time_always_joinable,
        )
        for name, policy in POLICIES.items()
    }
