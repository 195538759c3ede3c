"""Configuration loading and defaults."""

from __future__ import annotations

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict

import yaml

DEFAULT_SETTINGS: Dict[str, Any] = {
    "database": {
        "path": "data/prompt_playground.db",
    },
    "execution": {
        "max_concurrency": 2,
        "batch_delay_ms": 350,
        "timeout_seconds": 60,
    },
    "generation": {
        "temperature": 0.7,
        "max_output_tokens": 1000,
    },
    "credentials": {
        "env": {
            "openai": ["OPENAI_API_KEY"],
            "anthropic": ["ANTHROPIC_API_KEY"],
            "google": ["GOOGLE_API_KEY", "GEMINI_API_KEY"],
        },
    },
    "guardrails": {
        "high_cost_warning_usd": 5.0,
        "max_models_before_rate_warning": 4,
        "daily_model_call_limit": 40,
        "daily_cost_limit_usd": 25.0,
        "quota_warning_ratio": 0.8,
        "default_prompt_token_estimate": 120,
        "budget_models": ["gpt-4o-mini", "claude-3-5-haiku", "gemini-flash"],
    },
}


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    merged = deepcopy(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def load_settings(settings_path: str = "config/settings.yaml") -> Dict[str, Any]:
    """Loads settings.yaml and merges it onto defaults."""
    merged = deepcopy(DEFAULT_SETTINGS)
    config_path = Path(settings_path)
    if config_path.exists():
        with config_path.open("r", encoding="utf-8") as f:
            user_cfg = yaml.safe_load(f) or {}
        merged = _deep_merge(merged, user_cfg)
    return merged
