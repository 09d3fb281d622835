"""
FastAPI application for the appraisal engine.

Exposes market analysis to the display and report collaborators.
Production deployment configuration via environment variables.
"""

import logging
import os
from typing import Optional

from fastapi import FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware

from core.appraisal_engine import InvalidSubjectVehicleError, MarketAnalysisEngine
from utils.config import Config
from web.schemas import AppraisalAnalysisRequest, MarketAnalysisRequest
from web.state import AnalysisStore, fingerprint


logger = logging.getLogger(__name__)

# =============================================================================
# Environment Configuration
# =============================================================================

# Production mode detection
IS_PRODUCTION = os.getenv("PRODUCTION", "").lower() == "true"

# CORS configuration - locked down for production
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "").split(",") if os.getenv("ALLOWED_ORIGINS") else []
if not ALLOWED_ORIGINS and not IS_PRODUCTION:
    # Development fallback only
    ALLOWED_ORIGINS = ["http://localhost:8000", "http://127.0.0.1:8000"]


def create_app(config: Optional[Config] = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    config = config or Config.load()

    app = FastAPI(
        title="Vehicle Appraisal Engine",
        description="Market value analysis of a damaged vehicle against comparable listings",
        version="1.0.0",
        # Production settings: disable docs/redoc for private deployment
        docs_url=None if IS_PRODUCTION else "/docs",
        redoc_url=None if IS_PRODUCTION else "/redoc",
        openapi_url=None if IS_PRODUCTION else "/openapi.json",
        debug=config.debug and not IS_PRODUCTION,
    )

    @app.get("/health", include_in_schema=False)
    def health():
        """Health endpoint. No dependencies, no IO."""
        return {"status": "healthy", "version": "1.0.0"}

    if ALLOWED_ORIGINS:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=ALLOWED_ORIGINS,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT"],
            allow_headers=["*"],
        )

    engine = MarketAnalysisEngine(
        settings=config.valuation_settings(),
        valuation_year=config.valuation_year,
    )
    store = AnalysisStore(cache_size=config.analysis_cache_size)
    app.state.analysis_store = store

    def run_analysis(request: MarketAnalysisRequest):
        """Compute (or reuse) the analysis for a request."""
        try:
            subject = request.subject.to_subject()
        except ValueError as e:
            raise HTTPException(status_code=422, detail=str(e))

        key = fingerprint(request.canonical())
        comparables = [c.to_comparable() for c in request.comparables]
        try:
            analysis = store.get_or_compute(
                key,
                lambda: engine.analyze(subject, comparables, request.reference_value),
            )
        except InvalidSubjectVehicleError as e:
            raise HTTPException(status_code=422, detail=str(e))
        return key, analysis

    @app.post("/api/market-analysis")
    def market_analysis(request: MarketAnalysisRequest):
        """
        Compute a market analysis without storing it.

        Returns the analysis plus the input fingerprint.
        """
        key, analysis = run_analysis(request)
        return {"fingerprint": key, "analysis": analysis.to_dict()}

    @app.put("/api/appraisals/{appraisal_id}/analysis")
    def submit_appraisal_analysis(appraisal_id: str, request: AppraisalAnalysisRequest):
        """
        Recalculate an appraisal's analysis.

        Last write wins: a revision older than the stored one is rejected
        with 409 and the current analysis.
        """
        key, analysis = run_analysis(request)
        applied, entry = store.submit(appraisal_id, request.revision, key, analysis)
        if not applied:
            raise HTTPException(
                status_code=409,
                detail={
                    "message": "A newer revision has already been calculated",
                    "current_revision": entry.revision,
                },
            )
        return entry.to_dict()

    @app.get("/api/appraisals/{appraisal_id}/analysis")
    def get_appraisal_analysis(appraisal_id: str):
        """Latest analysis for an appraisal."""
        entry = store.latest(appraisal_id)
        if entry is None:
            raise HTTPException(status_code=404, detail="No analysis calculated for this appraisal")
        return entry.to_dict()

    return app


# Create app instance for uvicorn
app = create_app()
