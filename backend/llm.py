from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from appconfig import Settings

logger = logging.getLogger(__name__)


class SummaryProviderError(Exception):
    """The external language model could not produce a summary."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


@dataclass
class LLMSummary:
    text: str
    model: str
    cost_estimate: Optional[float] = None


def _extract_text(payload: Any) -> str:
    if not isinstance(payload, dict):
        return ""
    choices = payload.get("choices") or []
    if not choices:
        return ""
    first = choices[0] or {}
    message = first.get("message") or {}
    if message.get("content"):
        return message["content"]
    return first.get("text") or ""


class OpenAIChatProvider:
    """
    Chat-completions client for the OpenAI API.
    A new httpx.Client is opened per call; pass `transport` to stub the network in tests.
    """

    name = "openai"

    def __init__(self, settings: Settings, *, transport: Optional[httpx.BaseTransport] = None):
        if settings.openai_api_key is None:
            raise ValueError("OPENAI_API_KEY is not configured")
        self._settings = settings
        self._transport = transport

    def _payload(self, text: str, model: str) -> Dict[str, Any]:
        return {
            "model": model,
            "messages": [
                {"role": "system", "content": self._settings.openai_system_prompt},
                {"role": "user", "content": text},
            ],
            "max_tokens": self._settings.openai_max_tokens,
            "temperature": self._settings.openai_temperature,
        }

    def estimate_cost(self, usage: Any) -> Optional[float]:
        if not isinstance(usage, dict):
            return None
        prompt_tokens = usage.get("prompt_tokens")
        completion_tokens = usage.get("completion_tokens")
        if prompt_tokens is None and completion_tokens is None:
            return None
        cost = (prompt_tokens or 0) / 1000 * self._settings.openai_input_cost_per_1k
        cost += (completion_tokens or 0) / 1000 * self._settings.openai_output_cost_per_1k
        return round(cost, 6)

    def summarize(self, text: str, model: Optional[str] = None) -> LLMSummary:
        model = model or self._settings.openai_model
        url = self._settings.openai_base_url.rstrip("/") + "/chat/completions"
        headers = {"Authorization": f"Bearer {self._settings.openai_api_key.get_secret_value()}"}

        try:
            with httpx.Client(timeout=self._settings.openai_timeout, transport=self._transport) as client:
                resp = client.post(url, json=self._payload(text, model), headers=headers)
        except httpx.HTTPError as e:
            raise SummaryProviderError(f"OpenAI request failed: {e}") from e

        try:
            data = resp.json()
        except ValueError:
            data = None

        logger.info("OpenAI status %s", resp.status_code)
        if resp.status_code >= 400:
            raise SummaryProviderError("OpenAI error", status_code=resp.status_code, details=data)

        usage = data.get("usage") if isinstance(data, dict) else None
        return LLMSummary(
            text=_extract_text(data),
            model=model,
            cost_estimate=self.estimate_cost(usage),
        )
