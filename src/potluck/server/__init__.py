"""ASGI application factory and dependencies for the Potluck server."""

from potluck.server.app import app, create_app

__all__ = ["app", "create_app"]
