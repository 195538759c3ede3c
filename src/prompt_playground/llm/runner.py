"""Fan one prompt out to several models in paced, bounded batches."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, cast

from .credentials import CredentialMap, CredentialResolver
from .providers.anthropic_provider import AnthropicProvider
from .providers.base import DEFAULT_TIMEOUT_SECONDS, LLMProvider
from .providers.google_provider import GoogleProvider
from .providers.openai_provider import OpenAIProvider
from .registry import DEFAULT_REGISTRY, ModelRegistry
from .types import (
    ErrorKind,
    GenerationConfig,
    MissingCredentialError,
    ModelDescriptor,
    PromptResult,
    Provider,
    ProviderError,
    ValidationError,
)

logger = logging.getLogger(__name__)

MAX_CONCURRENT_REQUESTS = 2
BATCH_DELAY_SECONDS = 0.35


def default_providers(registry: ModelRegistry, timeout_seconds: float) -> Dict[Provider, LLMProvider]:
    return {
        Provider.OPENAI: OpenAIProvider(registry, timeout_seconds=timeout_seconds),
        Provider.ANTHROPIC: AnthropicProvider(registry, timeout_seconds=timeout_seconds),
        Provider.GOOGLE: GoogleProvider(registry, timeout_seconds=timeout_seconds),
    }


class ModelRunner:
    """Runs a prompt against N models and returns N results in request order.

    Calls inside a batch run concurrently; the next batch only starts once
    every call of the current one has settled. Per-call failures become error
    results at their original position. Only validation problems raise.
    """

    def __init__(
        self,
        registry: ModelRegistry | None = None,
        credentials: CredentialResolver | None = None,
        providers: Mapping[Provider, LLMProvider] | None = None,
        max_concurrency: int = MAX_CONCURRENT_REQUESTS,
        batch_delay_seconds: float = BATCH_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        self.registry = registry or DEFAULT_REGISTRY
        self.credentials = credentials or CredentialResolver()
        self.providers = dict(providers or default_providers(self.registry, DEFAULT_TIMEOUT_SECONDS))
        self.max_concurrency = max_concurrency
        self.batch_delay_seconds = batch_delay_seconds
        self._sleep = sleep

    def _validate(self, prompt: str, model_keys: Sequence[str]) -> List[ModelDescriptor]:
        if not prompt or not prompt.strip():
            raise ValidationError("Prompt is required.")
        if not model_keys:
            raise ValidationError("At least one model is required.")
        return self.registry.validate(model_keys)

    def _run_one(
        self,
        prompt: str,
        model: ModelDescriptor,
        config: GenerationConfig,
        credential: str,
    ) -> PromptResult:
        provider = self.providers.get(model.provider)
        if provider is None:
            raise ProviderError(f"Unsupported provider: {model.provider.value}")
        return provider.execute(prompt, model.provider_model_id, config, credential)

    def _run_batch(
        self,
        prompt: str,
        batch: List[tuple[int, ModelDescriptor, str]],
        config: GenerationConfig,
        results: List[Optional[PromptResult]],
    ) -> None:
        logger.debug("Dispatching batch: %s", [model.key for _, model, _ in batch])
        with ThreadPoolExecutor(max_workers=len(batch)) as pool:
            futures = [
                (index, model, pool.submit(self._run_one, prompt, model, config, credential))
                for index, model, credential in batch
            ]
            for index, model, future in futures:
                try:
                    results[index] = future.result()
                except Exception as exc:
                    message = str(exc) or "Unknown error"
                    kind = getattr(exc, "kind", ErrorKind.PROVIDER)
                    logger.warning("Model %s failed (%s): %s", model.key, kind.value, message)
                    results[index] = PromptResult.failed(model, message, kind)

    def execute_model_runs(
        self,
        prompt: str,
        model_keys: Sequence[str],
        config: GenerationConfig | None = None,
        credential_overrides: CredentialMap | None = None,
    ) -> List[PromptResult]:
        models = self._validate(prompt, model_keys)
        config = config or GenerationConfig()
        results: List[Optional[PromptResult]] = [None] * len(models)

        dispatchable: List[tuple[int, ModelDescriptor, str]] = []
        for index, model in enumerate(models):
            credential = self.credentials.resolve(model.provider, credential_overrides)
            if not credential:
                error = MissingCredentialError(model.provider)
                logger.info("Skipping %s: no credential for %s", model.key, model.provider.value)
                results[index] = PromptResult.failed(model, str(error), error.kind)
                continue
            dispatchable.append((index, model, credential))

        for start in range(0, len(dispatchable), self.max_concurrency):
            if start > 0:
                self._sleep(self.batch_delay_seconds)
            batch = dispatchable[start : start + self.max_concurrency]
            self._run_batch(prompt, batch, config, results)

        unsettled = [models[index].key for index, result in enumerate(results) if result is None]
        if unsettled:
            raise RuntimeError(f"No result recorded for: {', '.join(unsettled)}")
        return cast(List[PromptResult], results)


def build_runner(
    settings: Dict[str, Any],
    registry: ModelRegistry | None = None,
    credentials: CredentialResolver | None = None,
) -> ModelRunner:
    """Wires a runner from loaded settings; credentials default to the environment."""
    execution = settings.get("execution", {})
    registry = registry or DEFAULT_REGISTRY
    timeout_seconds = float(execution.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS))
    if credentials is None:
        credentials = CredentialResolver.from_env(settings.get("credentials", {}).get("env"))
    return ModelRunner(
        registry=registry,
        credentials=credentials,
        providers=default_providers(registry, timeout_seconds),
        max_concurrency=int(execution.get("max_concurrency", MAX_CONCURRENT_REQUESTS)),
        batch_delay_seconds=float(execution.get("batch_delay_ms", BATCH_DELAY_SECONDS * 1000)) / 1000.0,
    )
