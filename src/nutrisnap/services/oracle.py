"""Nutrition oracle prompts and result validation."""

import base64
from dataclasses import dataclass
from typing import Protocol

from nutrisnap.domain.analysis import AnalysisInput, AnalysisResult, InputKind

ANALYSIS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "calories": {"type": "number", "minimum": 0},
        "protein": {"type": "number", "minimum": 0},
        "carbs": {"type": "number", "minimum": 0},
        "fat": {"type": "number", "minimum": 0},
        "sugar": {"type": "number", "minimum": 0},
        "confidence": {"type": "number", "minimum": 0, "maximum": 100},
    },
    "required": ["name", "calories", "protein", "carbs", "fat", "sugar", "confidence"],
    "additionalProperties": False,
}

IMAGE_PROMPT = (
    "Identify this food item. Estimate calories and macros (protein, carbs, "
    "fat and sugar in grams) for a standard serving.\n"
    "- Always make a best-effort guess, even for packaged goods or unclear "
    "images.\n"
    "- Set confidence to 100 if you can identify ANY food, drink, or food "
    "packaging.\n"
    "- Only set confidence to 0 if the image is clearly a non-food object or "
    "is blank or corrupt.\n"
    "Return strictly JSON."
)

TEXT_PROMPT_TEMPLATE = (
    'Analyze this food description: "{description}".\n'
    "Estimate calories and macros (protein, carbs, fat and sugar in grams) "
    "for a standard serving.\n"
    "- Always provide a result if the text describes something edible.\n"
    "- Set confidence to 100 for any valid food description.\n"
    "- Only set confidence to 0 for complete gibberish or non-food text.\n"
    "Return strictly JSON."
)


class OracleClient(Protocol):
    """Interface for a structured-output LLM call."""

    async def generate(  # noqa: PLR0913
        self,
        *,
        model: str,
        reasoning_effort: str | None,
        store: bool,
        prompt: str,
        schema: dict[str, object],
        image_data_url: str | None = None,
    ) -> dict[str, object]:
        """Return the structured JSON object produced by the model."""


@dataclass
class OracleService:
    """Service that prompts the oracle and validates its answer."""

    client: OracleClient
    model: str
    reasoning_effort: str | None
    store: bool

    async def analyze(self, analysis_input: AnalysisInput) -> AnalysisResult:
        """Estimate nutrition for an image or a text description."""
        if analysis_input.kind is InputKind.IMAGE:
            prompt = IMAGE_PROMPT
            image_data_url = _to_data_url(_as_bytes(analysis_input.payload))
        else:
            prompt = TEXT_PROMPT_TEMPLATE.format(
                description=str(analysis_input.payload).strip()
            )
            image_data_url = None
        raw = await self.client.generate(
            model=self.model,
            reasoning_effort=self.reasoning_effort,
            store=self.store,
            prompt=prompt,
            schema=ANALYSIS_SCHEMA,
            image_data_url=image_data_url,
        )
        return AnalysisResult.model_validate(raw)


def _as_bytes(payload: bytes | str) -> bytes:
    if isinstance(payload, bytes):
        return payload
    return payload.encode("utf-8")


def _to_data_url(image_bytes: bytes) -> str:
    """Convert bytes to a base64 data URL for image input."""
    mime_type = _detect_mime_type(image_bytes)
    encoded = base64.b64encode(image_bytes).decode("utf-8")
    return f"data:{mime_type};base64,{encoded}"


def _detect_mime_type(image_bytes: bytes) -> str:
    """Infer a basic image MIME type from file signatures."""
    if image_bytes.startswith(b"\xff\xd8\xff"):
        return "image/jpeg"
    if image_bytes.startswith(b"\x89PNG\r\n\x1a\n"):
        return "image/png"
    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"
    return "image/jpeg"
