# -*- coding: utf-8 -*-
"""
CardiaSense AI API

Cardiovascular risk dashboard: registration, AI risk assessment with history,
clinical research tools and PDF reports.
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import Optional

from fastapi import FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .assessment.client import RiskAssessmentClient, resolve_ai_settings
from .auth.api import router as auth_router
from .auth.security import get_current_user_from_request
from .clinical.api import router as clinical_router
from .config import Settings, settings
from .dashboard.api import router as dashboard_router
from .dashboard.controller import DashboardController
from .records.backends import backend_from_settings
from .records.storage import LocalRecordStore
from .reports.api import router as reports_router
from .reports.pdf_generator import ClinicalMetadata

logger = logging.getLogger(__name__)

_AUTH_EXEMPT_PREFIXES = (
    "/api/auth/login",
    "/api/auth/register",
    "/api/docs",
    "/api/redoc",
    "/api/openapi.json",
)


def create_app(
    *,
    store: Optional[LocalRecordStore] = None,
    client: Optional[RiskAssessmentClient] = None,
    cfg: Settings = settings,
) -> FastAPI:
    app = FastAPI(
        title="CardiaSense AI",
        description="Cardiovascular risk dashboard backed by an external AI collaborator",
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        openapi_url="/api/openapi.json",
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=cfg.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    store = store or LocalRecordStore(backend_from_settings(cfg), history_limit=cfg.history_limit)
    client = client or RiskAssessmentClient(resolve_ai_settings(cfg))

    app.state.settings = cfg
    app.state.store = store
    app.state.client = client
    app.state.controller = DashboardController(store, client)
    app.state.report_metadata = ClinicalMetadata(
        physician_name=cfg.physician_name,
        qualifications=cfg.physician_qualifications,
        clinic_name=cfg.clinic_name,
    )
    app.state.pdf_generator = None  # created on first report

    @app.middleware("http")
    async def _auth_gate(request: Request, call_next):
        path = request.url.path
        if path.startswith("/api") and path != "/api/health" and not any(path.startswith(p) for p in _AUTH_EXEMPT_PREFIXES):
            try:
                user = get_current_user_from_request(request)
                request.state.user = user
            except HTTPException as exc:
                return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})
        return await call_next(request)

    app.include_router(auth_router)
    app.include_router(dashboard_router)
    app.include_router(clinical_router)
    app.include_router(reports_router)

    @app.get("/api/health")
    def health_check():
        return {
            "status": "ok",
            "version": __version__,
            "timestamp": datetime.now().isoformat(),
        }

    logger.info("CardiaSense app created (store=%s)", type(store.backend).__name__)
    return app


def run() -> None:
    """Console entry point (used by pyproject [project.scripts])."""
    import uvicorn

    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("cardiasense.api:create_app", factory=True, host=settings.host, port=settings.port, reload=False)


if __name__ == "__main__":
    run()
