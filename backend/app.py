from __future__ import annotations

# Standard library
import datetime
import os
import logging as _logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

# Third-party
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

# Local application imports
from api.analyze import router as analyze_router
from application.orchestrators import FoodAnalysisOrchestrator
from domain.errors import FoodAnalysisError
from infrastructure.config import Settings, load_settings, mask_key
from infrastructure.logging import configure_logging
from inference.vision_client import VisionClient

# --- Basic logging configuration (minimal) ---
_BOOT_SETTINGS = load_settings()
configure_logging(_BOOT_SETTINGS.log_level)

logger = _logging.getLogger("startup")


def _utc_timestamp() -> str:
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the FastAPI application.

    Args:
        settings: Explicit configuration; read from the environment when None.

    The orchestrator and its HTTP client are created in the lifespan and
    stored on `app.state.orchestrator`; tests may assign it directly.
    """
    app_settings = settings or _BOOT_SETTINGS

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        logger.info(
            "startup.config",
            extra={
                "gemini_key_masked": mask_key(app_settings.resolved_gemini_key),
                "gpt_key_masked": mask_key(app_settings.resolved_gpt_key),
                "base_url": app_settings.base_url,
            },
        )
        if not app_settings.has_any_key:
            logger.warning("startup.no_api_keys")

        async with VisionClient(
            base_url=app_settings.base_url,
            timeout_s=app_settings.timeout_s,
        ) as vision_client:
            app.state.settings = app_settings
            app.state.orchestrator = FoodAnalysisOrchestrator(app_settings, vision_client)
            logger.info("lifespan.ready", extra={"status": "serving"})
            yield
            logger.info("lifespan.shutdown", extra={"status": "cleanup"})

    app = FastAPI(
        title="Food Vision Proxy",
        version=app_settings.app_version,
        lifespan=lifespan,
    )
    app.state.settings = app_settings

    @app.exception_handler(FoodAnalysisError)
    async def _food_analysis_error(_: Request, exc: FoodAnalysisError) -> JSONResponse:
        if exc.status_code >= 500:
            logger.error(
                "request.failed",
                extra={"error_type": type(exc).__name__, "error": exc.message},
            )
        return JSONResponse(status_code=exc.status_code, content={"message": exc.message})

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(_: Request, exc: RequestValidationError) -> JSONResponse:
        return JSONResponse(status_code=400, content={"message": "Invalid request body"})

    @app.exception_handler(Exception)
    async def _unhandled(_: Request, exc: Exception) -> JSONResponse:
        logger.exception("request.unhandled_error")
        return JSONResponse(status_code=500, content={"message": "Internal Server Error"})

    @app.get("/health")
    @app.get("/api/health")
    async def health() -> dict[str, str]:
        return {"status": "OK", "timestamp": _utc_timestamp()}

    @app.get("/version")
    async def version() -> dict[str, str]:
        return {"version": app_settings.app_version}

    app.include_router(analyze_router)
    return app


app = create_app()

# Explicit export per mypy/tests
__all__: list[str] = ["app", "create_app"]


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "8000")),
        reload=os.getenv("ENVIRONMENT") == "development",
    )
