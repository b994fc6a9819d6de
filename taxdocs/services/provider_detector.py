"""
Share registry detection from dividend statement text.

Identifies which registry (Computershare, Link, Boardroom) issued a
statement, or whether the company issued it directly. Detection only
selects label synonyms and is recorded on the result; it never gates
field extraction.
"""
from dataclasses import replace
from typing import FrozenSet, List, Optional, Sequence, Union

import structlog

from taxdocs.exceptions import PatternRegistryError
from taxdocs.models import RegistryProvider
from taxdocs.services.patterns import (
    ProviderProfile,
    build_provider_registry,
    default_provider_profiles,
    pattern as pattern_indicator,
    registry_abns,
)

logger = structlog.get_logger(__name__)


class ProviderDetector:
    """
    Detect the share registry behind a dividend statement.

    Every profile's indicators are scored against the text; the highest
    score wins, ties go to the profile listed first, and a text that
    matches nothing is ``unknown``.

    Example:
        >>> detector = ProviderDetector()
        >>> detector.detect("Computershare Investor Services ...")
        <RegistryProvider.COMPUTERSHARE: 'computershare'>
    """

    def __init__(self, profiles: Optional[Sequence[ProviderProfile]] = None):
        """
        Initialize the detector.

        Args:
            profiles: Registry profiles in tie-break order. Defaults to
                ``default_provider_profiles()``.
        """
        self._profiles: List[ProviderProfile] = list(
            profiles if profiles is not None else default_provider_profiles()
        )
        self._registry = build_provider_registry(self._profiles)

    @property
    def registry_abns(self) -> FrozenSet[str]:
        """ABNs of the registries themselves, never the issuing company's."""
        return registry_abns(self._profiles)

    def detect(self, text: str) -> RegistryProvider:
        """
        Detect the registry provider from statement text.

        Args:
            text: Full statement text.

        Returns:
            Detected RegistryProvider, UNKNOWN when nothing matches.
        """
        if not text:
            return RegistryProvider.UNKNOWN

        best_provider = RegistryProvider.UNKNOWN
        best_score = 0.0
        for provider, match in self._registry.score(text).items():
            # Strictly greater keeps the earlier profile on ties
            if match.score > best_score:
                best_provider = provider
                best_score = match.score

        logger.debug("provider_detected", provider=best_provider.value, score=best_score)
        return best_provider

    def supported_providers(self) -> List[RegistryProvider]:
        """Providers this detector can report, in tie-break order."""
        return [profile.provider for profile in self._profiles]

    def add_pattern(
        self,
        provider: Union[RegistryProvider, str],
        pattern: str,
        weight: float = 1.0,
    ) -> None:
        """
        Add a detection pattern for a provider.

        Only this detector's own registry changes.

        Args:
            provider: Provider tag, e.g. ``RegistryProvider.LINK`` or ``"link"``.
            pattern: Case-insensitive regex to match.
            weight: Score contributed when the pattern matches.

        Raises:
            PatternRegistryError: If the provider has no profile.
        """
        try:
            tag = RegistryProvider(provider)
        except ValueError:
            raise PatternRegistryError(
                f"Unknown registry provider: {provider}",
                details={"provider": str(provider)},
            )

        for index, profile in enumerate(self._profiles):
            if profile.provider == tag:
                indicator = pattern_indicator(f"custom:{pattern}", pattern, weight)
                self._profiles[index] = replace(
                    profile, indicators=profile.indicators + (indicator,)
                )
                self._registry = build_provider_registry(self._profiles)
                return

        raise PatternRegistryError(
            f"Unknown registry provider: {provider}",
            details={"provider": tag.value},
        )


def get_provider_detector() -> ProviderDetector:
    """Create a ProviderDetector with the default registry profiles."""
    return ProviderDetector()
