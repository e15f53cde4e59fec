"""HTTP provider for the remote analysis endpoint."""

import base64
from dataclasses import dataclass

import httpx
from pydantic import ValidationError

from nutrisnap.domain.analysis import AnalysisInput, AnalysisResult, InputKind
from nutrisnap.services.providers import InferenceProvider, ProviderError


@dataclass
class HttpxRemoteProvider(InferenceProvider):
    """HTTPX-backed provider for the server analysis endpoint."""

    base_url: str
    http_client: httpx.AsyncClient

    @classmethod
    def create(cls, base_url: str) -> "HttpxRemoteProvider":
        """Create a remote provider with a managed httpx session."""
        return cls(base_url=base_url.rstrip("/"), http_client=httpx.AsyncClient())

    async def infer(self, analysis_input: AnalysisInput) -> AnalysisResult:
        """Send one analysis request and validate the JSON answer."""
        path, body = _request_for(analysis_input)
        try:
            response = await self.http_client.post(f"{self.base_url}{path}", json=body)
        except httpx.HTTPError as exc:
            raise ProviderError(f"Remote analysis transport failed: {exc}") from exc
        if response.is_error:
            raise ProviderError(
                f"Remote analysis returned {response.status_code}: "
                f"{error_detail(response)}"
            )
        try:
            return AnalysisResult.model_validate(response.json())
        except (ValueError, ValidationError) as exc:
            raise ProviderError(f"Remote analysis body is malformed: {exc}") from exc

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _request_for(analysis_input: AnalysisInput) -> tuple[str, dict[str, str]]:
    if analysis_input.kind is InputKind.IMAGE:
        payload = analysis_input.payload
        if isinstance(payload, str):
            payload = payload.encode("utf-8")
        encoded = base64.b64encode(payload).decode("ascii")
        return "/api/analyze/image", {"image": encoded}
    return "/api/analyze/text", {"description": str(analysis_input.payload)}


def error_detail(response: httpx.Response) -> str:
    """Return the `error (details)` text of an API error response."""
    try:
        body = response.json()
    except ValueError:
        return response.text or "no body"
    if isinstance(body, dict):
        error = body.get("error")
        details = body.get("details")
        if error and details:
            return f"{error} ({details})"
        if error:
            return str(error)
    return str(body)
