"""Meal diary CRUD endpoints backed by the configured repository."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from pydantic import ValidationError

from nutrisnap.api.models import MealCreateRequest, MealUpdateRequest, error_response
from nutrisnap.domain.meals import DiaryRecord, new_record_id

if TYPE_CHECKING:
    from nutrisnap.containers import AppContainer
    from nutrisnap.services.meals import MealRepository

router = APIRouter(prefix="/api/meals", tags=["meals"])
logger = logging.getLogger(__name__)

REQUIRED_MEAL_FIELDS = ["name", "time", "date", "type"]


def _repository(request: Request) -> MealRepository:
    container: AppContainer = request.app.state.container
    return container.meal_repository


async def _find(
    repository: MealRepository, scope: str | None, record_id: str
) -> DiaryRecord | None:
    for record in await repository.get_all(scope):
        if record.id == record_id:
            return record
    return None


def _database_error(route: str, exc: Exception) -> JSONResponse:
    logger.error("[%s] Database error: %s", route, exc)
    return error_response(500, "Database error", str(exc))


@router.get("", response_model=None)
async def list_meals(
    request: Request, user_id: str | None = Query(default=None, alias="userId")
) -> JSONResponse:
    """Return every meal of a user."""
    if not user_id:
        return error_response(400, "Missing or invalid userId parameter")
    try:
        records = await _repository(request).get_all(user_id)
    except Exception as exc:
        return _database_error("GET /api/meals", exc)
    return JSONResponse([record.to_payload() for record in records])


@router.get("/{record_id}", response_model=None)
async def get_meal(
    record_id: str,
    request: Request,
    user_id: str | None = Query(default=None, alias="userId"),
) -> JSONResponse:
    """Return one meal by id."""
    try:
        record = await _find(_repository(request), user_id, record_id)
    except Exception as exc:
        return _database_error("GET /api/meals/:id", exc)
    if record is None:
        return error_response(404, "Meal not found")
    return JSONResponse(record.to_payload())


@router.post("", response_model=None)
async def create_meal(body: MealCreateRequest, request: Request) -> JSONResponse:
    """Store a new meal; an id is generated when the client sends none."""
    if not body.user_id or body.meal is None:
        return error_response(400, "Missing data", required=["userId", "meal"])
    if any(not body.meal.get(name) for name in REQUIRED_MEAL_FIELDS):
        return error_response(
            400, "Missing required meal fields", required=REQUIRED_MEAL_FIELDS
        )
    payload = {"calories": 0, **body.meal}
    if not payload.get("id"):
        payload["id"] = new_record_id()
    try:
        record = DiaryRecord.model_validate(payload)
    except ValidationError as exc:
        return error_response(400, "Invalid meal", str(exc))
    try:
        created = await _repository(request).add(body.user_id, record)
    except Exception as exc:
        return _database_error("POST /api/meals", exc)
    return JSONResponse(created.to_payload())


@router.put("/{record_id}", response_model=None)
async def update_meal(
    record_id: str,
    body: MealUpdateRequest,
    request: Request,
    user_id: str | None = Query(default=None, alias="userId"),
) -> JSONResponse:
    """Overwrite the given fields of a meal."""
    if body.meal is None:
        return error_response(400, "Missing meal data")
    repository = _repository(request)
    try:
        existing = await _find(repository, user_id, record_id)
    except Exception as exc:
        return _database_error("PUT /api/meals/:id", exc)
    if existing is None:
        return error_response(404, "Meal not found")
    changes = {key: value for key, value in body.meal.items() if value is not None}
    try:
        record = DiaryRecord.model_validate(
            {**existing.to_payload(), **changes, "id": record_id}
        )
    except ValidationError as exc:
        return error_response(400, "Invalid meal", str(exc))
    try:
        await repository.update(user_id, record)
    except LookupError:
        return error_response(404, "Meal not found")
    except Exception as exc:
        return _database_error("PUT /api/meals/:id", exc)
    return JSONResponse({"success": True})


@router.delete("/{record_id}", response_model=None)
async def delete_meal(
    record_id: str,
    request: Request,
    user_id: str | None = Query(default=None, alias="userId"),
) -> JSONResponse:
    """Delete a meal by id."""
    repository = _repository(request)
    try:
        existing = await _find(repository, user_id, record_id)
        if existing is None:
            return error_response(404, "Meal not found")
        await repository.delete(user_id, record_id)
    except Exception as exc:
        return _database_error("DELETE /api/meals/:id", exc)
    return JSONResponse({"success": True})
