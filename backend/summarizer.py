from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from appconfig import Settings, get_settings
from extractive import summarize_extractive
from llm import OpenAIChatProvider, SummaryProviderError

logger = logging.getLogger(__name__)

SOURCE_EXTRACTIVE = "extractive"


def _extractive_result(text: str, settings: Settings) -> Dict[str, Any]:
    return {
        "summary": summarize_extractive(text, settings.extractive_max_sentences),
        "source": SOURCE_EXTRACTIVE,
        "model": None,
        "cost_estimate": None,
    }


def summarize_text(
    text: str,
    model: Optional[str] = None,
    *,
    settings: Optional[Settings] = None,
    provider: Optional[OpenAIChatProvider] = None,
) -> Dict[str, Any]:
    """
    Summarize already validated text.

    - Uses the extractive fallback when DISABLE_OPENAI is set or no API key is configured
    - Otherwise asks the external model (`model` overrides the configured default)
    - External failures raise SummaryProviderError unless FALLBACK_ON_ERROR is on

    Returns {"summary", "source", "model", "cost_estimate"}.
    """
    settings = settings or get_settings()

    if not settings.use_openai:
        logger.info(
            "using extractive fallback (disable_openai=%s, has_key=%s)",
            settings.disable_openai,
            settings.openai_api_key is not None,
        )
        return _extractive_result(text, settings)

    provider = provider or OpenAIChatProvider(settings)
    try:
        result = provider.summarize(text, model=model)
    except SummaryProviderError as e:
        if not settings.fallback_on_error:
            raise
        logger.warning("%s failed (%s), falling back to extractive summary", provider.name, e)
        return _extractive_result(text, settings)

    return {
        "summary": result.text,
        "source": provider.name,
        "model": result.model,
        "cost_estimate": result.cost_estimate,
    }
