"""Helper for running the Potluck ASGI application."""

from __future__ import annotations

import os
from typing import Optional

import uvicorn

APP_PATH = "potluck.server.app:app"


def serve(host: Optional[str] = None, port: Optional[int] = None, reload: bool = False) -> None:
    """Run the API with uvicorn, defaulting to ``POTLUCK_SERVER_HOST``/``POTLUCK_SERVER_PORT``."""

    resolved_host = host or os.environ.get("POTLUCK_SERVER_HOST", "127.0.0.1")
    try:
        resolved_port = port or int(os.environ.get("POTLUCK_SERVER_PORT", "8000"))
    except ValueError as exc:
        raise SystemExit(f"Invalid POTLUCK_SERVER_PORT: {exc}") from exc

    uvicorn.run(APP_PATH, host=resolved_host, port=resolved_port, reload=reload)


def main() -> None:
    """Entry point for ``python -m potluck.server.run``."""

    serve(reload=os.environ.get("RELOAD") == "1")


if __name__ == "__main__":
    main()
