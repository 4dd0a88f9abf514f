"""Tests for HTTP-based adapters."""

import asyncio
import json

import httpx
import pytest

from class_sessions.adapters.platform_client import HttpxPlatformClient


def _client(handler) -> HttpxPlatformClient:  # type: ignore[no-untyped-def]
    transport = httpx.MockTransport(handler)
    async_client = httpx.AsyncClient(transport=transport)
    return HttpxPlatformClient(
        base_url="https://platform.test", http_client=async_client
    )


def test_platform_client_sessions() -> None:
    seen: list[tuple[str, str, str | None]] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(
            (request.method, request.url.path, request.headers.get("Authorization"))
        )
        if request.method == "GET":
            assert request.url.params["classId"] == "a"
            return httpx.Response(200, json={"sessions": [{"id": "s1"}]})
        payload = json.loads(request.content.decode())
        assert payload == {"classId": "a", "meetingPlatform": "agora"}
        return httpx.Response(201, json={"session": {"id": "s2"}})

    client = _client(handler)

    sessions = asyncio.run(client.list_sessions("a", token="tok"))
    created = asyncio.run(
        client.create_session({"classId": "a", "meetingPlatform": "agora"})
    )

    assert sessions == [{"id": "s1"}]
    assert created == {"session": {"id": "s2"}}
    assert seen == [
        ("GET", "/api/sessions", "Bearer tok"),
        ("POST", "/api/sessions", None),
    ]


def test_platform_client_join_session() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/session/join"
        payload = json.loads(request.content.decode())
        return httpx.Response(
            200,
            json={"sessionParticipantId": "p1", "data": payload},
        )

    client = _client(handler)

    response = asyncio.run(
        client.join_session({"meeting_class_id": "a", "title": "Algebra"}, "tok")
    )

    assert response["sessionParticipantId"] == "p1"
    assert response["data"] == {"meeting_class_id": "a", "title": "Algebra"}


def test_platform_client_dashboard_classes() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.path == "/api/dashboard/tutor/dashboard"
        return httpx.Response(
            200, json={"data": {"classes": [{"_id": "a", "meetingId": "m1"}]}}
        )

    client = _client(handler)

    classes = asyncio.run(client.dashboard_classes("tutor"))

    assert classes == [{"_id": "a", "meetingId": "m1"}]


def test_platform_client_tolerates_missing_lists() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, json={"data": None, "sessions": None})

    client = _client(handler)

    assert asyncio.run(client.dashboard_classes("student")) == []
    assert asyncio.run(client.list_sessions("a")) == []


def test_platform_client_raises_http_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500, json={"error": "boom"})

    client = _client(handler)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(client.join_session({"meeting_class_id": "a"}))


def test_platform_client_create_strips_trailing_slash() -> None:
    client = HttpxPlatformClient.create("https://platform.test/", timeout_seconds=3)

    assert client.base_url == "https://platform.test"
    assert client.timeout_seconds == 3
    asyncio.run(client.close())
