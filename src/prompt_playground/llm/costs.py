"""Token-to-dollar estimation shared by post-hoc accounting and pre-flight checks."""

from __future__ import annotations

import math

from .types import ModelDescriptor

TOKENS_PER_WORD = 1.3
MIN_PROMPT_TOKENS = 20


def estimate_cost(model: ModelDescriptor, input_tokens: int, output_tokens: int) -> float:
    return ((input_tokens / 1000.0) * model.cost_per_1k_input) + (
        (output_tokens / 1000.0) * model.cost_per_1k_output
    )


def estimate_prompt_tokens(text: str) -> int:
    """Rough token count from whitespace-separated words; 0 for blank text."""
    words = (text or "").split()
    if not words:
        return 0
    return max(math.ceil(len(words) * TOKENS_PER_WORD), MIN_PROMPT_TOKENS)


def preflight_prompt_tokens(prompt: str, default_prompt_tokens: int = 0) -> int:
    return estimate_prompt_tokens(prompt) or default_prompt_tokens


def estimate_preflight_cost(
    model: ModelDescriptor,
    prompt: str,
    max_output_tokens: int,
    default_prompt_tokens: int = 0,
) -> float:
    # Worst case: the model uses its whole output budget.
    return estimate_cost(model, preflight_prompt_tokens(prompt, default_prompt_tokens), max_output_tokens)
