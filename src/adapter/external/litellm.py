"""LiteLLM adapter — implements TextAnalysisPort with one provider-agnostic completion call."""

import logging
import os

import litellm
from litellm import acompletion

from port.text_analysis import (
    TextAnalysis,
    TextAnalysisAuthError,
    TextAnalysisError,
    TextAnalysisRateLimitError,
    TextAnalysisTimeoutError,
)
from utils.json_parsing import parse_json_content
from utils.prompts import build_analysis_prompt

# Suppress LiteLLM's verbose logging (proxy server warnings, etc.)
litellm.suppress_debug_info = True
logging.getLogger("LiteLLM").setLevel(logging.CRITICAL)

logger = logging.getLogger(__name__)

ANALYSIS_MODEL = os.getenv('ANALYSIS_MODEL', 'openai/gpt-4.1-mini')


class LiteLLMTextAnalyzer:
    """Explains and translates text using the caller's own API key."""

    def __init__(self, model: str = ANALYSIS_MODEL, timeout: float = 30.0):
        self.model = model
        self.timeout = timeout

    async def analyze(self, text: str, credential: str) -> TextAnalysis:
        """Analyze text with a single request; failures are not retried.

        Raises:
            ValueError: If text is blank.
            TextAnalysisAuthError / TextAnalysisRateLimitError /
            TextAnalysisTimeoutError / TextAnalysisError: provider failures,
            including a response that is not a JSON object.
        """
        if not text or not text.strip():
            raise ValueError("text cannot be empty")

        try:
            response = await acompletion(
                model=self.model,
                messages=[{"role": "user", "content": build_analysis_prompt(text.strip())}],
                api_key=credential,
                temperature=0.3,
                response_format={"type": "json_object"},
                timeout=self.timeout,
            )
        except litellm.Timeout as e:
            raise TextAnalysisTimeoutError(str(e)) from e
        except litellm.AuthenticationError as e:
            raise TextAnalysisAuthError(str(e)) from e
        except litellm.RateLimitError as e:
            raise TextAnalysisRateLimitError(str(e)) from e
        except (litellm.ServiceUnavailableError, litellm.APIConnectionError, litellm.APIError) as e:
            raise TextAnalysisError(str(e)) from e

        content = ""
        if response.choices:
            message = response.choices[0].message
            if message and message.content:
                content = message.content.strip()

        parsed = parse_json_content(content) if content else None
        if parsed is None:
            logger.error("Unusable analysis response", extra={
                "model": self.model,
                "response_id": getattr(response, "id", None),
            })
            raise TextAnalysisError("Analysis response was not a JSON object")

        tags = parsed.get("suggestedTags") or []
        analysis = TextAnalysis(
            explanation=str(parsed.get("explanation") or ""),
            translation=str(parsed.get("translation") or ""),
            suggested_tags=[t for t in tags if isinstance(t, str)] if isinstance(tags, list) else [],
        )
        logger.debug("Text analysis completed", extra={"model": self.model, "tags": len(analysis.suggested_tags)})
        return analysis
