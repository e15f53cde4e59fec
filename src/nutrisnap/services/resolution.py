"""Meal resolution: remote oracle first, local oracle as fallback."""

import logging
from dataclasses import dataclass, field

from nutrisnap.domain.analysis import (
    AllSourcesExhausted,
    AnalysisInput,
    AnalysisResult,
    AnalysisTimeout,
    InputKind,
    InvalidAnalysisInput,
    LowConfidence,
    ProviderFailure,
    Stage,
)
from nutrisnap.services.providers import InferenceProvider
from nutrisnap.services.racing import RaceFailure, RaceTimeout, race

DEFAULT_CONFIDENCE_THRESHOLD = 40.0

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StageDeadlines:
    """Per-stage, per-input-kind deadlines in seconds."""

    remote_image: float = 20.0
    remote_text: float = 10.0
    local_image: float = 15.0
    local_text: float = 10.0

    def for_stage(self, stage: Stage, kind: InputKind) -> float:
        """Return the deadline for a stage and input kind."""
        if stage is Stage.REMOTE:
            return self.remote_image if kind is InputKind.IMAGE else self.remote_text
        return self.local_image if kind is InputKind.IMAGE else self.local_text


@dataclass
class ResolutionPipeline:
    """Resolves food input into one gated nutrition estimate.

    At most one remote attempt and one local attempt are made per call, in
    that order, each bounded by its own deadline. Individual provider errors
    never escape; callers only see ``AnalysisError`` subclasses.
    """

    remote: InferenceProvider
    local: InferenceProvider | None = None
    deadlines: StageDeadlines = field(default_factory=StageDeadlines)
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD

    async def resolve(self, analysis_input: AnalysisInput | None) -> AnalysisResult:
        """Return a usable estimate or raise an ``AnalysisError``."""
        if analysis_input is None or analysis_input.is_empty:
            raise InvalidAnalysisInput("Nothing to analyze")

        try:
            result = await self._attempt(Stage.REMOTE, self.remote, analysis_input)
        except (AnalysisTimeout, ProviderFailure) as remote_error:
            if self.local is None:
                raise
            _logger.warning("Falling back to local analysis: %s", remote_error)
            try:
                result = await self._attempt(Stage.LOCAL, self.local, analysis_input)
            except (AnalysisTimeout, ProviderFailure) as local_error:
                _logger.warning("Local analysis failed too: %s", local_error)
                raise AllSourcesExhausted(remote_error, local_error) from local_error
        return self._gate(result)

    async def _attempt(
        self,
        stage: Stage,
        provider: InferenceProvider,
        analysis_input: AnalysisInput,
    ) -> AnalysisResult:
        deadline = self.deadlines.for_stage(stage, analysis_input.kind)
        try:
            return await race(lambda: provider.infer(analysis_input), deadline)
        except RaceTimeout as exc:
            raise AnalysisTimeout(stage, deadline) from exc
        except RaceFailure as exc:
            raise ProviderFailure(stage, exc.cause) from exc.cause

    def _gate(self, result: AnalysisResult) -> AnalysisResult:
        if result.confidence < self.confidence_threshold:
            _logger.warning(
                "Rejected %r with confidence %s (threshold %s)",
                result.name,
                result.confidence,
                self.confidence_threshold,
            )
            raise LowConfidence(result, self.confidence_threshold)
        return result
