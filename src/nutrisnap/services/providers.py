"""Inference provider contract and the direct-to-oracle provider."""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from nutrisnap.domain.analysis import AnalysisInput, AnalysisResult
from nutrisnap.services.oracle import OracleService


class ProviderError(Exception):
    """An inference call failed at the provider or transport level."""


class ProviderUnconfigured(ProviderError):
    """The provider has no credential and can never be called."""


class InferenceProvider(Protocol):
    """One inference backend producing nutrition estimates."""

    async def infer(self, analysis_input: AnalysisInput) -> AnalysisResult:
        """Return an estimate for the input or raise ``ProviderError``."""


@dataclass
class LocalProvider(InferenceProvider):
    """Provider that calls the oracle directly with a local credential."""

    oracle: OracleService

    @classmethod
    def create(
        cls,
        api_key: str | None,
        build_oracle: Callable[[str], OracleService],
    ) -> "LocalProvider":
        """Create the provider, refusing when no credential is configured."""
        if not api_key or not api_key.strip():
            raise ProviderUnconfigured("No oracle credential configured")
        return cls(oracle=build_oracle(api_key))

    async def infer(self, analysis_input: AnalysisInput) -> AnalysisResult:
        """Ask the oracle directly."""
        try:
            return await self.oracle.analyze(analysis_input)
        except Exception as exc:
            raise ProviderError(f"Direct oracle call failed: {exc}") from exc

