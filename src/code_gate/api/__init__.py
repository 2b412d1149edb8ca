"""
API Package.

Contains the live-status FastAPI application and the server that runs it.
"""
from .app import create_app, LiveReviewStore
from .live_page import render_live_page
from .live_server import LiveServer

__all__ = ["create_app", "LiveReviewStore", "render_live_page", "LiveServer"]
