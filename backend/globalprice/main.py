"""
Global Price Compare API - FastAPI Main Entry

LOCAL:
    cd backend
    pip install -e "..[test]"
    python -m uvicorn globalprice.main:app --reload --host 0.0.0.0 --port 8000

TRY IT:
    curl -i http://127.0.0.1:8000/health
    curl -i "http://127.0.0.1:8000/v1/offers?q=Samsung%20Galaxy%20S25&country=de"
    curl -i "http://127.0.0.1:8000/v1/compare?q=Samsung%20Galaxy%20S25&countries=in,us,jp"
    curl -i http://127.0.0.1:8000/v1/rates

CONFIG (env or backend/.env):
    SERPAPI_API_KEY, RAPIDAPI_KEY      product search providers
    FREE_CURRENCY_API_KEY              live exchange rates (static fallback otherwise)
    GEMINI_API_KEY, GEMINI_MODEL       optional offer validation
"""

from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from globalprice.api.routes_meta import router as meta_router
from globalprice.api.routes_offers import router as offers_router
from globalprice.core.config import Settings, settings as default_settings
from globalprice.core.logger import setup_logging
from globalprice.core.search import PriceComparisonService


def create_app(
    settings: Optional[Settings] = None,
    service: Optional[PriceComparisonService] = None,
) -> FastAPI:
    settings = settings or default_settings
    setup_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Global Price Compare API",
        version=settings.APP_VERSION,
        description="Compare trusted offers for one product across ten countries",
    )

    app.state.settings = settings
    app.state.service = service or PriceComparisonService.from_settings(settings)

    # CORS for the browser front end and the Swagger docs
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/")
    def root():
        return {
            "name": "Global Price Compare API",
            "status": "ok",
            "docs": "/docs",
            "health": "/health",
            "version": "/version",
        }

    @app.get("/health")
    def health():
        return {"ok": True}

    @app.get("/version")
    def version():
        return {"version": settings.APP_VERSION, "build": settings.BUILD_ID}

    app.include_router(offers_router)
    app.include_router(meta_router)

    return app


app = create_app()
