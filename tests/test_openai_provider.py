import types

import httpx
import openai
import pytest

from prompt_playground.llm.providers.openai_provider import OpenAIProvider
from prompt_playground.llm.registry import MODELS
from prompt_playground.llm.types import (
    GenerationConfig,
    Provider,
    ProviderError,
    RateLimitedError,
    TransportError,
)

CLIENT_TARGET = "prompt_playground.llm.providers.openai_provider.OpenAI"
REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _completion(text="Hi!", prompt_tokens=50, completion_tokens=25):
    return types.SimpleNamespace(
        id="chatcmpl-1",
        model="gpt-4o-mini-2024-07-18",
        choices=[types.SimpleNamespace(message=types.SimpleNamespace(content=text))],
        usage=types.SimpleNamespace(
            prompt_tokens=prompt_tokens,
            completion_tokens=completion_tokens,
            total_tokens=prompt_tokens + completion_tokens,
        ),
    )


def _fake_client_class(on_create, seen):
    class FakeOpenAI:
        def __init__(self, **kwargs):
            seen["client"] = kwargs
            self.chat = types.SimpleNamespace(completions=types.SimpleNamespace(create=self._create))

        def _create(self, **kwargs):
            seen["params"] = kwargs
            return on_create()

    return FakeOpenAI


def test_openai_success_maps_usage_and_cost(monkeypatch):
    seen = {}
    monkeypatch.setattr(CLIENT_TARGET, _fake_client_class(_completion, seen))

    config = GenerationConfig(top_p=0.5, presence_penalty=0.1)
    result = OpenAIProvider(timeout_seconds=7).execute("Hello", "gpt-4o-mini", config, "sk-user")

    assert seen["client"] == {"api_key": "sk-user", "timeout": 7, "max_retries": 0}
    params = seen["params"]
    assert params["model"] == "gpt-4o-mini"
    assert params["messages"] == [{"role": "user", "content": "Hello"}]
    assert params["temperature"] == 0.7
    assert params["max_tokens"] == 1000
    assert params["top_p"] == 0.5
    assert params["presence_penalty"] == 0.1
    assert "frequency_penalty" not in params

    mini = MODELS["gpt-4o-mini"]
    assert result.provider == Provider.OPENAI
    assert result.model_wire_id == "gpt-4o-mini"
    assert result.response_text == "Hi!"
    assert result.total_tokens == 75
    assert result.cost_estimate == (50 / 1000) * mini.cost_per_1k_input + (25 / 1000) * mini.cost_per_1k_output


def test_openai_rate_limit(monkeypatch):
    def raise_rate_limit():
        raise openai.RateLimitError(
            "Rate limit exceeded",
            response=httpx.Response(429, request=REQUEST),
            body={"message": "Rate limit exceeded", "type": "requests"},
        )

    monkeypatch.setattr(CLIENT_TARGET, _fake_client_class(raise_rate_limit, {}))

    with pytest.raises(RateLimitedError) as exc:
        OpenAIProvider().execute("p", "gpt-4o", GenerationConfig(), "k")

    assert str(exc.value).startswith("OpenAI rate limit reached")


def test_openai_status_error_uses_body_message(monkeypatch):
    def raise_bad_request():
        raise openai.BadRequestError(
            "Error code: 400",
            response=httpx.Response(400, request=REQUEST),
            body={"message": "max_tokens is too large", "type": "invalid_request_error"},
        )

    monkeypatch.setattr(CLIENT_TARGET, _fake_client_class(raise_bad_request, {}))

    with pytest.raises(ProviderError) as exc:
        OpenAIProvider().execute("p", "gpt-4o", GenerationConfig(max_output_tokens=10**9), "k")

    assert str(exc.value) == "max_tokens is too large"


def test_openai_status_error_without_body_uses_fallback(monkeypatch):
    def raise_server_error():
        raise openai.InternalServerError(
            "Error code: 500",
            response=httpx.Response(500, request=REQUEST),
            body=None,
        )

    monkeypatch.setattr(CLIENT_TARGET, _fake_client_class(raise_server_error, {}))

    with pytest.raises(ProviderError) as exc:
        OpenAIProvider().execute("p", "gpt-4o", GenerationConfig(), "k")

    assert str(exc.value) == "Failed to get response from OpenAI"


def test_openai_connection_error_is_transport(monkeypatch):
    def raise_connection():
        raise openai.APIConnectionError(request=REQUEST)

    monkeypatch.setattr(CLIENT_TARGET, _fake_client_class(raise_connection, {}))

    with pytest.raises(TransportError):
        OpenAIProvider().execute("p", "gpt-4o", GenerationConfig(), "k")


def test_openai_empty_choices_is_provider_error(monkeypatch):
    def empty():
        return types.SimpleNamespace(choices=[], usage=None)

    monkeypatch.setattr(CLIENT_TARGET, _fake_client_class(empty, {}))

    with pytest.raises(ProviderError):
        OpenAIProvider().execute("p", "gpt-4o", GenerationConfig(), "k")
