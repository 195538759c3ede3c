"""Per-provider API key resolution: caller overrides first, then server defaults."""

from __future__ import annotations

import base64
import binascii
import os
from typing import Any, Dict, Iterable, Mapping, Optional

from .types import Provider

DEFAULT_ENV_ALIASES: Dict[str, list[str]] = {
    "openai": ["OPENAI_API_KEY"],
    "anthropic": ["ANTHROPIC_API_KEY"],
    "google": ["GOOGLE_API_KEY", "GEMINI_API_KEY"],
}

CredentialMap = Mapping[Provider, str]


class CredentialResolver:
    """Holds the process-level fallback keys; built once at startup."""

    def __init__(self, defaults: Mapping[Provider, str] | None = None) -> None:
        self._defaults = {p: k for p, k in (defaults or {}).items() if k}

    @classmethod
    def from_env(cls, aliases: Mapping[str, Iterable[str]] | None = None) -> "CredentialResolver":
        defaults: Dict[Provider, str] = {}
        for name, env_names in (aliases or DEFAULT_ENV_ALIASES).items():
            for env_name in env_names:
                value = os.getenv(env_name)
                if value:
                    defaults[Provider(name)] = value
                    break
        return cls(defaults)

    def has_default(self, provider: Provider) -> bool:
        return provider in self._defaults

    def resolve(self, provider: Provider, overrides: CredentialMap | None = None) -> Optional[str]:
        override = (overrides or {}).get(provider)
        if override:
            return override
        return self._defaults.get(provider)


def decode_stored_key(encoded: str | None) -> Optional[str]:
    if not encoded:
        return None
    try:
        return base64.b64decode(encoded, validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None


def overrides_from_rows(rows: Iterable[Mapping[str, Any]]) -> Dict[Provider, str]:
    """Builds an override map from stored `{provider, encrypted_key, is_active}` rows."""
    overrides: Dict[Provider, str] = {}
    for row in rows:
        if not row.get("is_active", True):
            continue
        try:
            provider = Provider(str(row.get("provider")))
        except ValueError:
            continue
        decoded = decode_stored_key(row.get("encrypted_key"))
        if decoded:
            overrides[provider] = decoded
    return overrides


def parse_key_args(values: Iterable[str]) -> Dict[Provider, str]:
    """Parses `provider=secret` strings given on the command line."""
    overrides: Dict[Provider, str] = {}
    for value in values:
        if "=" not in value:
            raise ValueError("Invalid key format, expected provider=secret")
        name, secret = value.split("=", 1)
        overrides[Provider(name.strip())] = secret.strip()
    return overrides
