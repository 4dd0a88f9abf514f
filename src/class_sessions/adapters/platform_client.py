"""Tutoring platform REST API client."""

from dataclasses import dataclass
from typing import Protocol

import httpx


class PlatformClient(Protocol):
    """Interface for the platform backend endpoints used by the join flow."""

    async def list_sessions(
        self, class_id: str, token: str | None = None
    ) -> list[dict[str, object]]:
        """Return session records for a class."""

    async def create_session(
        self, payload: dict[str, object], token: str | None = None
    ) -> dict[str, object]:
        """Create a session for a class and return the raw response."""

    async def join_session(
        self, payload: dict[str, object], token: str | None = None
    ) -> dict[str, object]:
        """Register a join event and return the raw response."""

    async def dashboard_classes(
        self, role: str, token: str | None = None
    ) -> list[dict[str, object]]:
        """Return the classes listed on a role dashboard."""


@dataclass
class HttpxPlatformClient(PlatformClient):
    """HTTPX-backed platform client."""

    base_url: str
    http_client: httpx.AsyncClient
    timeout_seconds: float = 10.0

    @classmethod
    def create(
        cls, base_url: str, timeout_seconds: float = 10.0
    ) -> "HttpxPlatformClient":
        """Create a platform client with a managed httpx session."""
        return cls(
            base_url=base_url.rstrip("/"),
            http_client=httpx.AsyncClient(),
            timeout_seconds=timeout_seconds,
        )

    async def list_sessions(
        self, class_id: str, token: str | None = None
    ) -> list[dict[str, object]]:
        """Fetch sessions for a class."""
        response = await self.http_client.get(
            f"{self.base_url}/api/sessions",
            params={"classId": class_id},
            headers=_headers(token),
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        sessions = response.json().get("sessions", [])
        return sessions if isinstance(sessions, list) else []

    async def create_session(
        self, payload: dict[str, object], token: str | None = None
    ) -> dict[str, object]:
        """Create a session for a class."""
        response = await self.http_client.post(
            f"{self.base_url}/api/sessions",
            json=payload,
            headers=_headers(token),
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def join_session(
        self, payload: dict[str, object], token: str | None = None
    ) -> dict[str, object]:
        """Register participation via /api/session/join."""
        response = await self.http_client.post(
            f"{self.base_url}/api/session/join",
            json=payload,
            headers=_headers(token),
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        return response.json()

    async def dashboard_classes(
        self, role: str, token: str | None = None
    ) -> list[dict[str, object]]:
        """Fetch the role dashboard and return its class list."""
        response = await self.http_client.get(
            f"{self.base_url}/api/dashboard/{role}/dashboard",
            headers=_headers(token),
            timeout=self.timeout_seconds,
        )
        response.raise_for_status()
        payload = response.json()
        data = payload.get("data") if isinstance(payload, dict) else None
        classes = data.get("classes") if isinstance(data, dict) else None
        return classes if isinstance(classes, list) else []

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _headers(token: str | None) -> dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers
