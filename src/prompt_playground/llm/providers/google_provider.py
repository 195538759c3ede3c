"""Google Gemini REST provider."""

from __future__ import annotations

import time

from ..costs import estimate_cost
from ..registry import DEFAULT_REGISTRY, ModelRegistry
from ..types import GenerationConfig, PromptResult, Provider, ProviderError, TransportError
from .base import (
    DEFAULT_TIMEOUT_SECONDS,
    drop_unset,
    max_tokens_or_default,
    post_json,
    temperature_or_default,
)

API_BASE = "https://generativelanguage.googleapis.com/v1beta/models"


class GoogleProvider:
    provider = Provider.GOOGLE
    label = "Google"

    def __init__(
        self,
        registry: ModelRegistry | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.registry = registry or DEFAULT_REGISTRY
        self.timeout_seconds = timeout_seconds

    def execute(
        self,
        prompt: str,
        provider_model_id: str,
        config: GenerationConfig,
        credential: str,
    ) -> PromptResult:
        url = f"{API_BASE}/{provider_model_id}:generateContent?key={credential}"
        payload = {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": drop_unset(
                {
                    "temperature": temperature_or_default(config),
                    "maxOutputTokens": max_tokens_or_default(config),
                    "topP": config.top_p,
                }
            ),
        }

        start = time.perf_counter()
        try:
            data = post_json(url, self.label, payload, self.timeout_seconds)
        except TransportError as exc:
            # requests echoes the URL, which carries the key.
            raise TransportError(str(exc).replace(credential, "***")) from exc
        duration_ms = int((time.perf_counter() - start) * 1000)

        candidates = data.get("candidates") or []
        parts = []
        if candidates and isinstance(candidates[0], dict):
            parts = (candidates[0].get("content") or {}).get("parts") or []
        if not parts:
            raise ProviderError(f"Failed to get response from {self.label}")
        text = "".join(part.get("text", "") for part in parts if isinstance(part, dict))

        usage = data.get("usageMetadata") or {}
        tokens_in = int(usage.get("promptTokenCount", 0) or 0)
        tokens_out = int(usage.get("candidatesTokenCount", 0) or 0)
        pricing = self.registry.pricing_for(provider_model_id, self.provider)

        return PromptResult(
            response_text=text,
            model_wire_id=provider_model_id,
            provider=self.provider,
            total_tokens=tokens_in + tokens_out,
            input_tokens=tokens_in,
            output_tokens=tokens_out,
            duration_ms=duration_ms,
            cost_estimate=estimate_cost(pricing, tokens_in, tokens_out),
        )
