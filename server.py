"""Diagnosis API - FastAPI app over the place and social pipelines."""

import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel

import config
from diagnosis_errors import DiagnosisError
from diagnosis_service import PlaceDiagnosisService, SocialDiagnosisService
from result_cache import ResultCache

logging.basicConfig(
    level=getattr(logging, config.LOG_LEVEL, logging.INFO),
    format=config.LOG_FORMAT,
    datefmt="%H:%M:%S",
)
logger = logging.getLogger(__name__)


class PlaceDiagnosisRequest(BaseModel):
    url: str = ""


def create_app(
    place_service: Optional[PlaceDiagnosisService] = None,
    social_service: Optional[SocialDiagnosisService] = None,
) -> FastAPI:
    """Build the app. Both services share one cache unless given explicitly."""
    cache = ResultCache()
    places = place_service or PlaceDiagnosisService(cache)
    socials = social_service or SocialDiagnosisService(cache)

    app = FastAPI(
        title="Place Diagnosis API",
        description="Heuristic health score for map listings and social profiles",
        version=config.APP_VERSION,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(DiagnosisError)
    async def diagnosis_error_handler(request: Request, exc: DiagnosisError) -> JSONResponse:
        logger.warning(f"{request.method} {request.url.path} -> {exc.code}: {exc.debug.get('message', '')}")
        return JSONResponse(status_code=exc.status_code, content=exc.to_dict())

    # Plain def handlers: the sync pipeline runs in the worker thread pool.
    @app.get("/diagnosis/social")
    def diagnose_social(handle: str = "") -> dict:
        diagnosis, source = socials.diagnose(handle)
        return {"ok": True, "source": source, "data": diagnosis.to_dict()}

    @app.post("/diagnosis/place")
    def diagnose_place(body: PlaceDiagnosisRequest) -> dict:
        diagnosis, source = places.diagnose(body.url)
        return {"ok": True, "source": source, **diagnosis.to_dict()}

    @app.get("/health")
    def health() -> dict:
        return {"ok": True}

    @app.get("/version")
    def version() -> dict:
        return {"ok": True, "version": config.APP_VERSION}

    return app


app = create_app()
