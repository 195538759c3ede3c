"""OpenAI Chat Completions provider."""

from __future__ import annotations

import time

import openai
from openai import OpenAI

from ..costs import estimate_cost
from ..registry import DEFAULT_REGISTRY, ModelRegistry
from ..types import GenerationConfig, PromptResult, Provider, ProviderError, RateLimitedError, TransportError
from .base import (
    DEFAULT_TIMEOUT_SECONDS,
    drop_unset,
    error_message_from_body,
    max_tokens_or_default,
    rate_limit_message,
    temperature_or_default,
)


class OpenAIProvider:
    provider = Provider.OPENAI
    label = "OpenAI"

    def __init__(
        self,
        registry: ModelRegistry | None = None,
        timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        self.registry = registry or DEFAULT_REGISTRY
        self.timeout_seconds = timeout_seconds

    def _client(self, credential: str) -> OpenAI:
        # Keys differ per caller, so the client is built per call. The runner
        # owns pacing; the SDK must not retry on its own.
        return OpenAI(api_key=credential, timeout=self.timeout_seconds, max_retries=0)

    def execute(
        self,
        prompt: str,
        provider_model_id: str,
        config: GenerationConfig,
        credential: str,
    ) -> PromptResult:
        params = drop_unset(
            {
                "model": provider_model_id,
                "messages": [{"role": "user", "content": prompt}],
                "temperature": temperature_or_default(config),
                "max_tokens": max_tokens_or_default(config),
                "top_p": config.top_p,
                "frequency_penalty": config.frequency_penalty,
                "presence_penalty": config.presence_penalty,
            }
        )

        start = time.perf_counter()
        try:
            response = self._client(credential).chat.completions.create(**params)
        except openai.RateLimitError as exc:
            raise RateLimitedError(rate_limit_message(self.label)) from exc
        except openai.APIStatusError as exc:
            body = exc.body
            # The SDK sometimes unwraps the `error` object already.
            if isinstance(body, dict) and "error" not in body:
                body = {"error": body}
            raise ProviderError(error_message_from_body(body, self.label)) from exc
        except openai.APIConnectionError as exc:
            raise TransportError(str(exc)) from exc
        duration_ms = int((time.perf_counter() - start) * 1000)

        choices = getattr(response, "choices", None) or []
        if not choices:
            raise ProviderError(f"Failed to get response from {self.label}")
        text = getattr(choices[0].message, "content", "") or ""

        usage = getattr(response, "usage", None)
        tokens_in = int(getattr(usage, "prompt_tokens", 0) or 0)
        tokens_out = int(getattr(usage, "completion_tokens", 0) or 0)
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
