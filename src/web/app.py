"""
FastAPI application factory for the object counter.

Routes:
- /api/session/* -> start/stop/status/settings and per-frame ticks
- /api/history*  -> saved sessions, trend series, clear and CSV export
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from session.controller import SessionController
from storage.history import HistoryStore

from .routes import api


def create_app(controller: SessionController, store: Optional[HistoryStore] = None) -> FastAPI:
    """
    Create the FastAPI app around an existing controller and history store.

    The store should already be initialized; an uninitialized or missing
    store makes history reads return empty results.
    """
    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        controller.dispose()

    app = FastAPI(
        title="Object Counter",
        version="0.1.0",
        description="Real-time object counting with session history",
        lifespan=lifespan,
    )

    # CORS for development (Vite dev server)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["http://localhost:5173", "http://127.0.0.1:5173"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.controller = controller
    app.state.store = store

    app.include_router(api.router, prefix="/api")

    return app
