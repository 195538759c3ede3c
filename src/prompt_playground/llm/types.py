"""Shared LLM data structures and error kinds."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from enum import Enum
from typing import Any, Dict, Mapping, Optional


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    MISSING_CREDENTIAL = "missing_credential"
    RATE_LIMITED = "rate_limited"
    PROVIDER = "provider"
    TRANSPORT = "transport"


@dataclass(frozen=True)
class ModelDescriptor:
    key: str
    provider_model_id: str
    provider: Provider
    display_name: str
    context_window_tokens: int
    cost_per_1k_input: float
    cost_per_1k_output: float
    supports_images: bool = False


@dataclass
class GenerationConfig:
    temperature: Optional[float] = None
    max_output_tokens: Optional[int] = None
    top_p: Optional[float] = None
    frequency_penalty: Optional[float] = None
    presence_penalty: Optional[float] = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "GenerationConfig":
        """Builds a config from request-style keys; unknown keys are ignored."""
        data = data or {}
        max_tokens = data.get("max_output_tokens")
        if max_tokens is None:
            max_tokens = data.get("max_tokens")
        return cls(
            temperature=data.get("temperature"),
            max_output_tokens=max_tokens,
            top_p=data.get("top_p"),
            frequency_penalty=data.get("frequency_penalty"),
            presence_penalty=data.get("presence_penalty"),
        )


@dataclass
class PromptResult:
    response_text: str
    model_wire_id: str
    provider: Provider
    total_tokens: int = 0
    input_tokens: int = 0
    output_tokens: int = 0
    duration_ms: int = 0
    cost_estimate: float = 0.0
    error_message: Optional[str] = None
    error_kind: Optional[ErrorKind] = None

    @property
    def ok(self) -> bool:
        return self.error_message is None

    @classmethod
    def failed(
        cls,
        descriptor: ModelDescriptor,
        message: str,
        kind: ErrorKind = ErrorKind.PROVIDER,
    ) -> "PromptResult":
        return cls(
            response_text=f"Error: {message}",
            model_wire_id=descriptor.provider_model_id,
            provider=descriptor.provider,
            error_message=message,
            error_kind=kind,
        )

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data["provider"] = self.provider.value
        data["error_kind"] = self.error_kind.value if self.error_kind else None
        return data


class ValidationError(ValueError):
    """Request rejected before any provider call was made."""

    kind = ErrorKind.VALIDATION


class UnknownModelError(ValidationError):
    def __init__(self, key: str) -> None:
        super().__init__(f"Unknown model: {key}")
        self.key = key


class ProviderError(RuntimeError):
    """Provider failed to return a valid generation."""

    kind = ErrorKind.PROVIDER


class MissingCredentialError(ProviderError):
    kind = ErrorKind.MISSING_CREDENTIAL

    def __init__(self, provider: Provider) -> None:
        super().__init__(
            f"Missing API key for {provider.value}. "
            "Add a personal key in Settings or configure a server-side fallback."
        )
        self.provider = provider


class RateLimitedError(ProviderError):
    kind = ErrorKind.RATE_LIMITED


class TransportError(ProviderError):
    kind = ErrorKind.TRANSPORT
