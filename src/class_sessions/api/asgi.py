"""ASGI entrypoint for the class sessions API."""

import os

import uvicorn

from class_sessions.api.app import create_app
from class_sessions.containers import build_container

app = create_app(build_container())


def main() -> None:
    """Serve the API with uvicorn."""
    uvicorn.run(
        app,
        host=os.getenv("HOST", "0.0.0.0"),  # noqa: S104
        port=int(os.getenv("PORT", "8000")),
    )


if __name__ == "__main__":
    main()
