"""Anthropic Messages API provider."""

from __future__ import annotations

import time

from ..costs import estimate_cost
from ..registry import DEFAULT_REGISTRY, ModelRegistry
from ..types import GenerationConfig, PromptResult, Provider, ProviderError
from .base import DEFAULT_TIMEOUT_SECONDS, max_tokens_or_default, post_json, temperature_or_default

API_URL = "https://api.anthropic.com/v1/messages"
API_VERSION = "2023-06-01"


class AnthropicProvider:
    provider = Provider.ANTHROPIC
    label = "Anthropic"

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
        headers = {
            "x-api-key": credential,
            "anthropic-version": API_VERSION,
            "content-type": "application/json",
        }
        payload = {
            "model": provider_model_id,
            "max_tokens": max_tokens_or_default(config),
            "temperature": temperature_or_default(config),
            "messages": [{"role": "user", "content": prompt}],
        }

        start = time.perf_counter()
        data = post_json(API_URL, self.label, payload, self.timeout_seconds, headers=headers)
        duration_ms = int((time.perf_counter() - start) * 1000)

        content = data.get("content")
        if not isinstance(content, list) or not content:
            raise ProviderError(f"Failed to get response from {self.label}")
        text = "".join(
            item.get("text", "")
            for item in content
            if isinstance(item, dict) and item.get("type") == "text"
        )

        usage = data.get("usage") or {}
        tokens_in = int(usage.get("input_tokens", 0) or 0)
        tokens_out = int(usage.get("output_tokens", 0) or 0)
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
