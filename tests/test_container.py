"""Tests for container wiring."""

import asyncio
import importlib
import sys
from datetime import timedelta

import pytest

from class_sessions.config import Settings, build_policies
from class_sessions.containers import build_container
from class_sessions.domain.classes import ClassDefinition
from tests.conftest import SERVICE_KEY, one_time_class


def test_build_container_creates_services(settings) -> None:
    container = build_container(settings)
    assert container.eligibility_engine.policy.name == "generic"
    assert container.orchestrator_for("tutor").engine.policy.name == "tutor"
    asyncio.run(container.close_resources())


def test_engine_for_unknown_policy(container) -> None:
    with pytest.raises(KeyError):
        container.engine_for("parent")


def test_build_policies_applies_configured_windows() -> None:
    settings = Settings(
        platform_base_url="https://platform.test",
        supabase_url="https://example.supabase.co",
        supabase_service_key=SERVICE_KEY,
        pre_join_minutes=10,
        grace_minutes=20,
    )

    policies = build_policies(settings)

    assert policies["generic"].pre_join_minutes == 10
    assert policies["generic"].grace_minutes == 20
    assert policies["tutor"].grace_minutes == 0
    assert policies["tutor"].one_time_always_joinable is True


def test_asgi_app_builds_from_environment(monkeypatch) -> None:
    monkeypatch.setenv("PLATFORM_BASE_URL", "https://platform.test")
    monkeypatch.setenv("SUPABASE_URL", "https://example.supabase.co")
    monkeypatch.setenv("SUPABASE_SERVICE_KEY", SERVICE_KEY)
    monkeypatch.setenv("DEFAULT_TIMEZONE", "IST")
    monkeypatch.delitem(sys.modules, "class_sessions.api.asgi", raising=False)

    asgi = importlib.import_module("class_sessions.api.asgi")

    container = asgi.app.state.container
    assert container.settings.platform_base_url == "https://platform.test"
    assert container.clock().utcoffset() == timedelta(hours=5, minutes=30)
    asyncio.run(container.close_resources())


def test_ticker_for_uses_named_policy(container, tutor) -> None:
    updates = []
    ticker = container.ticker_for(tutor, updates.append, policy_name="tutor")

    evaluations = ticker.refresh(
        [ClassDefinition.from_payload(one_time_class(classDate="2025-06-20"))]
    )

    assert ticker.engine.policy.name == "tutor"
    assert ticker.interval_seconds == 60.0
    assert evaluations[0][1].message == "You can join this class"
    assert updates == [evaluations]
