"""Pydantic models for analysis and meal endpoint payloads."""

from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, Field


class ImageAnalysisRequest(BaseModel):
    """Body of an image analysis request."""

    image: str | None = None


class TextAnalysisRequest(BaseModel):
    """Body of a text analysis request."""

    description: str | None = None


class MealCreateRequest(BaseModel):
    """Body of a meal creation request."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: str | None = Field(default=None, alias="userId")
    meal: dict[str, object] | None = None


class MealUpdateRequest(BaseModel):
    """Body of a meal update request; fields left out keep their value."""

    meal: dict[str, object] | None = None


class ErrorBody(BaseModel):
    """Error payload returned by the API."""

    error: str
    details: str | None = None
    required: list[str] | None = None


def error_response(
    status_code: int,
    error: str,
    details: str | None = None,
    required: list[str] | None = None,
) -> JSONResponse:
    """Build a JSON error response."""
    body = ErrorBody(error=error, details=details, required=required)
    return JSONResponse(body.model_dump(exclude_none=True), status_code=status_code)
