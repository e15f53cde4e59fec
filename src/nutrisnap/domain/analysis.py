"""Models and errors for meal analysis."""

import base64
import binascii
import re
from dataclasses import dataclass
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field

_DATA_URL_PREFIX = re.compile(r"^data:image/(png|jpeg|jpg|webp);base64,")

MANUAL_ENTRY_MESSAGE = (
    "We could not identify this food. Please enter the meal manually."
)


class InputKind(StrEnum):
    """Kind of payload sent to the oracle."""

    IMAGE = "image"
    TEXT = "text"


class Stage(StrEnum):
    """Pipeline stage that produced an outcome."""

    REMOTE = "remote"
    LOCAL = "local"


class AnalysisResult(BaseModel):
    """Structured nutrition estimate returned by the oracle."""

    model_config = ConfigDict(frozen=True)

    name: str
    calories: float = Field(ge=0.0)
    protein: float = Field(ge=0.0)
    carbs: float = Field(ge=0.0)
    fat: float = Field(ge=0.0)
    sugar: float = Field(ge=0.0)
    confidence: float = Field(ge=0.0, le=100.0)


@dataclass(frozen=True)
class AnalysisInput:
    """Image bytes or a text description, exactly one per analysis."""

    kind: InputKind
    payload: bytes | str

    @classmethod
    def image(cls, data: bytes) -> "AnalysisInput":
        """Build an image input from raw bytes."""
        return cls(kind=InputKind.IMAGE, payload=data)

    @classmethod
    def text(cls, description: str) -> "AnalysisInput":
        """Build a text input from a food description."""
        return cls(kind=InputKind.TEXT, payload=description)

    @classmethod
    def from_data_url(cls, value: str) -> "AnalysisInput":
        """Build an image input from base64 text, with or without a data URL header."""
        cleaned = _DATA_URL_PREFIX.sub("", value.strip())
        try:
            data = base64.b64decode(cleaned, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidAnalysisInput("Image is not valid base64") from exc
        return cls.image(data)

    @property
    def is_empty(self) -> bool:
        """Return True when there is nothing to analyze."""
        if isinstance(self.payload, bytes):
            return not self.payload
        return not self.payload.strip()


class AnalysisError(Exception):
    """Base class for every failure the resolution pipeline reports."""

    user_message = MANUAL_ENTRY_MESSAGE


class InvalidAnalysisInput(AnalysisError):
    """Input was absent or empty; nothing was sent to any provider."""


class AnalysisTimeout(AnalysisError):
    """A stage did not answer before its deadline."""

    def __init__(self, stage: Stage, deadline_seconds: float) -> None:
        super().__init__(f"{stage} analysis timed out after {deadline_seconds:g}s")
        self.stage = stage
        self.deadline_seconds = deadline_seconds


class ProviderFailure(AnalysisError):
    """A stage's provider or its transport rejected the request."""

    def __init__(self, stage: Stage, cause: BaseException) -> None:
        super().__init__(f"{stage} analysis failed: {cause}")
        self.stage = stage
        self.cause = cause


class LowConfidence(AnalysisError):
    """The oracle answered but its confidence is below the gate."""

    def __init__(self, result: AnalysisResult, threshold: float) -> None:
        super().__init__(
            f"Confidence {result.confidence:g} is below threshold {threshold:g}"
        )
        self.result = result
        self.threshold = threshold


class AllSourcesExhausted(AnalysisError):
    """Both the remote and the local stage failed."""

    def __init__(
        self,
        primary_cause: AnalysisTimeout | ProviderFailure,
        secondary_cause: AnalysisTimeout | ProviderFailure,
    ) -> None:
        super().__init__(
            f"All analysis sources failed: {primary_cause}; {secondary_cause}"
        )
        self.primary_cause = primary_cause
        self.secondary_cause = secondary_cause
