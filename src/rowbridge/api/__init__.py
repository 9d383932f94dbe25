"""HTTP API for rowbridge."""

from .app import create_app, get_bridge

__all__ = ["create_app", "get_bridge"]
