"""Static catalog of supported models and their pricing."""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, List, Optional

from .types import ModelDescriptor, Provider, UnknownModelError

MODELS: Dict[str, ModelDescriptor] = {
    "gpt-4o": ModelDescriptor(
        key="gpt-4o",
        provider_model_id="gpt-4o",
        provider=Provider.OPENAI,
        display_name="GPT-4o",
        context_window_tokens=128000,
        cost_per_1k_input=2.5,
        cost_per_1k_output=10,
        supports_images=True,
    ),
    "gpt-4o-mini": ModelDescriptor(
        key="gpt-4o-mini",
        provider_model_id="gpt-4o-mini",
        provider=Provider.OPENAI,
        display_name="GPT-4o Mini",
        context_window_tokens=128000,
        cost_per_1k_input=0.15,
        cost_per_1k_output=0.6,
        supports_images=True,
    ),
    "gpt-4-turbo": ModelDescriptor(
        key="gpt-4-turbo",
        provider_model_id="gpt-4-turbo",
        provider=Provider.OPENAI,
        display_name="GPT-4 Turbo",
        context_window_tokens=128000,
        cost_per_1k_input=10,
        cost_per_1k_output=30,
        supports_images=True,
    ),
    "claude-3-5-sonnet": ModelDescriptor(
        key="claude-3-5-sonnet",
        provider_model_id="claude-3-5-sonnet-20241022",
        provider=Provider.ANTHROPIC,
        display_name="Claude 3.5 Sonnet",
        context_window_tokens=200000,
        cost_per_1k_input=3,
        cost_per_1k_output=15,
        supports_images=True,
    ),
    "claude-3-5-haiku": ModelDescriptor(
        key="claude-3-5-haiku",
        provider_model_id="claude-3-5-haiku-20241022",
        provider=Provider.ANTHROPIC,
        display_name="Claude 3.5 Haiku",
        context_window_tokens=200000,
        cost_per_1k_input=0.8,
        cost_per_1k_output=4,
        supports_images=False,
    ),
    "gemini-pro": ModelDescriptor(
        key="gemini-pro",
        provider_model_id="gemini-1.5-pro",
        provider=Provider.GOOGLE,
        display_name="Gemini 1.5 Pro",
        context_window_tokens=2000000,
        cost_per_1k_input=1.25,
        cost_per_1k_output=5,
        supports_images=True,
    ),
    "gemini-flash": ModelDescriptor(
        key="gemini-flash",
        provider_model_id="gemini-1.5-flash",
        provider=Provider.GOOGLE,
        display_name="Gemini 1.5 Flash",
        context_window_tokens=1000000,
        cost_per_1k_input=0.075,
        cost_per_1k_output=0.3,
        supports_images=True,
    ),
}

# Pricing used when a provider echoes a wire id that is not in the catalog.
PRICING_FALLBACKS: Dict[Provider, str] = {
    Provider.OPENAI: "gpt-4o",
    Provider.ANTHROPIC: "claude-3-5-sonnet",
    Provider.GOOGLE: "gemini-pro",
}


class ModelRegistry:
    """Read-only lookup over a fixed set of model descriptors."""

    def __init__(
        self,
        models: Iterable[ModelDescriptor],
        pricing_fallbacks: Dict[Provider, str] | None = None,
    ) -> None:
        self._models: Dict[str, ModelDescriptor] = {}
        for model in models:
            if model.key in self._models:
                raise ValueError(f"Duplicate model key: {model.key}")
            self._models[model.key] = model
        self._fallbacks = dict(pricing_fallbacks or PRICING_FALLBACKS)

    def __iter__(self) -> Iterator[ModelDescriptor]:
        return iter(self._models.values())

    def __len__(self) -> int:
        return len(self._models)

    def __contains__(self, key: object) -> bool:
        return key in self._models

    def keys(self) -> List[str]:
        return list(self._models)

    def lookup(self, key: str) -> Optional[ModelDescriptor]:
        return self._models.get(key)

    def require(self, key: str) -> ModelDescriptor:
        model = self._models.get(key)
        if model is None:
            raise UnknownModelError(key)
        return model

    def validate(self, keys: Iterable[str]) -> List[ModelDescriptor]:
        """Resolves every key, failing on the first unknown one."""
        return [self.require(key) for key in keys]

    def for_provider(self, provider: Provider) -> List[ModelDescriptor]:
        return [m for m in self._models.values() if m.provider == provider]

    def find_by_wire_id(self, wire_id: str, provider: Provider) -> Optional[ModelDescriptor]:
        # Scoped to the provider so two vendors sharing an id string never collide.
        for model in self._models.values():
            if model.provider == provider and model.provider_model_id == wire_id:
                return model
        return None

    def pricing_for(self, wire_id: str, provider: Provider) -> ModelDescriptor:
        """Descriptor used to price a call; never fails for a known provider."""
        found = self.find_by_wire_id(wire_id, provider)
        if found is not None:
            return found
        return self._models[self._fallbacks[provider]]


DEFAULT_REGISTRY = ModelRegistry(MODELS.values())
