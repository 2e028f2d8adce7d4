"""HTTP server for chatflow."""

from chatflow.server.api import app, create_app

__all__ = ["app", "create_app"]
