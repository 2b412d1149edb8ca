"""
FastAPI Application Factory.

Creates the live-status application that serves review pages and their
status snapshots while a run is in progress.
"""
import threading
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from fastapi import FastAPI

from ..models.review import StatusSnapshot
from .routers import health, review

StatusProvider = Callable[[], StatusSnapshot]


@dataclass
class LiveReview:
    html: str
    status: StatusProvider


class LiveReviewStore:
    """Reviews served by the app, keyed by review id. Thread-safe."""

    def __init__(self):
        self._lock = threading.Lock()
        self._reviews: Dict[str, LiveReview] = {}

    def register(self, review_id: str, html: str, status: StatusProvider) -> None:
        with self._lock:
            self._reviews[review_id] = LiveReview(html=html, status=status)

    def get(self, review_id: str) -> Optional[LiveReview]:
        with self._lock:
            return self._reviews.get(review_id)


def create_app(store: Optional[LiveReviewStore] = None) -> FastAPI:
    """Create and configure FastAPI application."""
    app = FastAPI(title="code-gate")
    app.state.reviews = store or LiveReviewStore()

    app.include_router(health.router)
    app.include_router(review.router)

    return app
