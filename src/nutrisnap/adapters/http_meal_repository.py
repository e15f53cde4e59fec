"""HTTP repository for diary records stored behind the meal API."""

from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from nutrisnap.adapters.remote_provider import error_detail
from nutrisnap.domain.meals import DiaryRecord
from nutrisnap.services.meals import MealRepository

GUEST_USER_ID = "guest"


class MealApiError(RuntimeError):
    """The meal API could not be reached or rejected a request."""


@dataclass
class HttpxMealRepository(MealRepository):
    """HTTPX-backed repository for the ``/api/meals`` endpoints."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str) -> "HttpxMealRepository":
        """Create a repository with a managed httpx session."""
        return cls(base_url=base_url.rstrip("/"), http_client=httpx.AsyncClient())

    async def get_all(self, scope: str | None) -> list[DiaryRecord]:
        """Fetch every record of the scope."""
        response = await self._send(
            "GET", "/api/meals", params={"userId": _user_id(scope)}
        )
        try:
            return [DiaryRecord.model_validate(item) for item in response.json()]
        except (TypeError, ValueError, ValidationError) as exc:
            raise MealApiError(f"Meal API list is malformed: {exc}") from exc

    async def add(self, scope: str | None, record: DiaryRecord) -> DiaryRecord:
        """Create the record on the server."""
        response = await self._send(
            "POST",
            "/api/meals",
            json={"userId": _user_id(scope), "meal": record.to_payload()},
        )
        try:
            return DiaryRecord.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise MealApiError(f"Meal API answer is malformed: {exc}") from exc

    async def update(self, scope: str | None, record: DiaryRecord) -> DiaryRecord:
        """Overwrite the record on the server."""
        await self._send(
            "PUT",
            f"/api/meals/{record.id}",
            params={"userId": _user_id(scope)},
            json={"meal": record.to_payload()},
        )
        return record

    async def delete(self, scope: str | None, record_id: str) -> None:
        """Delete the record on the server."""
        await self._send(
            "DELETE", f"/api/meals/{record_id}", params={"userId": _user_id(scope)}
        )

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()

    async def _send(self, method: str, path: str, **kwargs: object) -> httpx.Response:
        try:
            response = await self.http_client.request(
                method, f"{self.base_url}{path}", **kwargs
            )
        except httpx.HTTPError as exc:
            raise MealApiError(f"Meal API transport failed: {exc}") from exc
        if response.status_code == httpx.codes.NOT_FOUND:
            raise LookupError(f"Meal API: {error_detail(response)}")
        if response.is_error:
            raise MealApiError(
                f"Meal API returned {response.status_code}: {error_detail(response)}"
            )
        return response


def _user_id(scope: str | None) -> str:
    return scope or GUEST_USER_ID
