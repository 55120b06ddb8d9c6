"""Text-analysis port — outbound interface for explaining a word or phrase."""

from dataclasses import dataclass, field
from typing import Protocol


class TextAnalysisError(Exception):
    """Base exception for text-analysis port errors."""


class TextAnalysisTimeoutError(TextAnalysisError):
    """Analysis request timed out."""


class TextAnalysisRateLimitError(TextAnalysisError):
    """Provider rate limit exceeded."""


class TextAnalysisAuthError(TextAnalysisError):
    """Provider rejected the credential."""


@dataclass(frozen=True)
class TextAnalysis:
    explanation: str
    translation: str
    suggested_tags: list[str] = field(default_factory=list)


class TextAnalysisPort(Protocol):
    """Single stateless request/response; no retry."""

    async def analyze(self, text: str, credential: str) -> TextAnalysis: ...
