"""LLM provider interface and shared HTTP error handling."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Protocol

import requests

from ..types import GenerationConfig, PromptResult, Provider, ProviderError, RateLimitedError, TransportError

DEFAULT_TEMPERATURE = 0.7
DEFAULT_MAX_OUTPUT_TOKENS = 1000
DEFAULT_TIMEOUT_SECONDS = 60


class LLMProvider(Protocol):
    provider: Provider

    def execute(
        self,
        prompt: str,
        provider_model_id: str,
        config: GenerationConfig,
        credential: str,
    ) -> PromptResult:
        ...


def temperature_or_default(config: GenerationConfig) -> float:
    return DEFAULT_TEMPERATURE if config.temperature is None else config.temperature


def max_tokens_or_default(config: GenerationConfig) -> int:
    return DEFAULT_MAX_OUTPUT_TOKENS if config.max_output_tokens is None else config.max_output_tokens


def drop_unset(payload: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in payload.items() if value is not None}


def rate_limit_message(label: str) -> str:
    return (
        f"{label} rate limit reached. Please wait a moment or reduce the number "
        "of simultaneous models."
    )


def error_message_from_body(body: Any, label: str) -> str:
    """Picks `error.message`, then `message`, then a generic fallback."""
    if isinstance(body, Mapping):
        error = body.get("error")
        if isinstance(error, Mapping) and error.get("message"):
            return str(error["message"])
        if body.get("message"):
            return str(body["message"])
    return f"Failed to get response from {label}"


def raise_for_provider_status(res: requests.Response, label: str) -> None:
    if res.status_code < 400:
        return
    try:
        body = res.json()
    except ValueError:
        body = {}
    if res.status_code == 429:
        raise RateLimitedError(rate_limit_message(label))
    raise ProviderError(error_message_from_body(body, label))


def post_json(
    url: str,
    label: str,
    payload: Dict[str, Any],
    timeout: float,
    headers: Dict[str, str] | None = None,
) -> Dict[str, Any]:
    try:
        res = requests.post(url, headers=headers or {}, json=payload, timeout=timeout)
    except requests.RequestException as exc:
        raise TransportError(str(exc)) from exc

    raise_for_provider_status(res, label)
    try:
        data = res.json()
    except ValueError as exc:
        raise ProviderError(f"Malformed response from {label}: {exc}") from exc
    if not isinstance(data, dict):
        raise ProviderError(f"Malformed response from {label}")
    return data
