"""FastAPI application exposing the WCM page pipeline."""

from .app import create_app

__all__ = ["create_app"]
