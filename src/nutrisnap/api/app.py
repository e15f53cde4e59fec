"""FastAPI application factory for the analysis and meal endpoints."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from nutrisnap.api.meals import router as meals_router
from nutrisnap.api.models import (
    ImageAnalysisRequest,
    TextAnalysisRequest,
    error_response,
)
from nutrisnap.app_logging import configure_logging
from nutrisnap.containers import AppContainer
from nutrisnap.domain.analysis import AnalysisInput, InvalidAnalysisInput


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container
    app.include_router(meals_router)

    @app.exception_handler(RequestValidationError)
    async def invalid_request(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        details = "; ".join(
            f"{_location(error['loc'])}: {error['msg']}" for error in exc.errors()
        )
        return error_response(400, "Invalid request", details)

    async def run_oracle(
        request: Request, analysis_input: AnalysisInput, route: str
    ) -> JSONResponse:
        state_container: AppContainer = request.app.state.container
        oracle = state_container.oracle_service
        if oracle is None:
            logger.error("[%s] Oracle credential is not configured", route)
            return error_response(
                500, "AI failed", "Oracle credential is not configured"
            )
        try:
            result = await oracle.analyze(analysis_input)
        except Exception as exc:
            logger.exception("[%s] AI error", route)
            return error_response(500, "AI failed", str(exc))
        return JSONResponse(result.model_dump())

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/api/analyze/image", response_model=None)
    async def analyze_image(
        body: ImageAnalysisRequest, request: Request
    ) -> JSONResponse:
        """Estimate nutrition for a base64 image."""
        if not body.image:
            return error_response(400, "Image required")
        try:
            analysis_input = AnalysisInput.from_data_url(body.image)
        except InvalidAnalysisInput as exc:
            return error_response(400, "Invalid image", str(exc))
        if analysis_input.is_empty:
            return error_response(400, "Image required")
        return await run_oracle(request, analysis_input, "POST /api/analyze/image")

    @app.post("/api/analyze/text", response_model=None)
    async def analyze_text(body: TextAnalysisRequest, request: Request) -> JSONResponse:
        """Estimate nutrition for a food description."""
        if not body.description or not body.description.strip():
            return error_response(400, "Description required")
        analysis_input = AnalysisInput.text(body.description)
        return await run_oracle(request, analysis_input, "POST /api/analyze/text")

    return app


def _location(loc: tuple[object, ...]) -> str:
    return ".".join(str(part) for part in loc)
