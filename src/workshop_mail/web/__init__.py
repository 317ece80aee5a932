"""Web application entry point for the email gateway."""

from .app import create_app

app = create_app()

__all__ = ["create_app", "app"]
