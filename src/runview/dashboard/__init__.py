# Copyright (c) Syntropy Systems
"""runview dashboard web UI."""

from .server import app, create_app

__all__ = ["app", "create_app"]
