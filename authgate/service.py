"""Application factory for the authgate web service."""

from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI

from .config import Settings, load_settings
from .passwords import PasswordHasher
from .sessions import SessionManager
from .store import CredentialStore, build_store
from .web import register_ui_routes
from .workflow import AuthWorkflow

logger = logging.getLogger("authgate.service")


def create_app(
    *,
    settings: Optional[Settings] = None,
    store: Optional[CredentialStore] = None,
    hasher: Optional[PasswordHasher] = None,
    session_manager: Optional[SessionManager] = None,
    initialize_store: bool = True,
) -> FastAPI:
    """Instantiate the FastAPI application."""

    settings = settings or load_settings()
    if store is None:
        store = build_store(settings)
    if initialize_store:
        store.initialize()

    if session_manager is None:
        session_manager = SessionManager(settings.session_secret, ttl=settings.session_ttl)
    if not settings.secure_cookies:
        logger.warning(
            "Session cookies are not marked as secure. Only disable secure cookies for"
            " local development."
        )

    workflow = AuthWorkflow(store, hasher or PasswordHasher())

    app = FastAPI(
        title="authgate",
        version="0.1.0",
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.store = store
    app.state.session_manager = session_manager
    app.state.workflow = workflow

    register_ui_routes(
        app,
        workflow,
        session_manager=session_manager,
        secure_cookies=settings.secure_cookies,
    )
    return app


__all__ = ["create_app"]
