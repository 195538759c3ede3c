"""Advisory cost estimate and usage guardrails checked before a run."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Sequence

from .llm.costs import estimate_preflight_cost, preflight_prompt_tokens
from .llm.registry import DEFAULT_REGISTRY, ModelRegistry

DEFAULT_PROMPT_TOKEN_ESTIMATE = 120


@dataclass
class ModelEstimate:
    model_key: str
    display_name: str
    cost_usd: float


@dataclass
class RunEstimate:
    assumed_input_tokens: int
    max_output_tokens: int
    breakdown: List[ModelEstimate] = field(default_factory=list)

    @property
    def total_usd(self) -> float:
        return sum(item.cost_usd for item in self.breakdown)

    def cost_for(self, model_key: str) -> float | None:
        for item in self.breakdown:
            if item.model_key == model_key:
                return item.cost_usd
        return None


def estimate_run(
    prompt: str,
    model_keys: Sequence[str],
    max_output_tokens: int,
    registry: ModelRegistry | None = None,
    default_prompt_tokens: int = DEFAULT_PROMPT_TOKEN_ESTIMATE,
) -> RunEstimate:
    """Prices a run assuming every model spends its whole output budget.

    Blank prompts are priced at `default_prompt_tokens` input tokens so the
    estimate is never zero before the user starts typing.
    """
    registry = registry or DEFAULT_REGISTRY
    models = registry.validate(model_keys)
    assumed = preflight_prompt_tokens(prompt, default_prompt_tokens)
    return RunEstimate(
        assumed_input_tokens=assumed,
        max_output_tokens=max_output_tokens,
        breakdown=[
            ModelEstimate(
                model_key=model.key,
                display_name=model.display_name,
                cost_usd=estimate_preflight_cost(model, prompt, max_output_tokens, default_prompt_tokens),
            )
            for model in models
        ],
    )


def check_run(
    estimate: RunEstimate,
    usage: Mapping[str, Any],
    guardrails: Mapping[str, Any],
    acknowledged_cost: bool = False,
    budget_mode: bool = False,
) -> Dict[str, Any]:
    """Decides whether a run may start given today's usage.

    `usage` carries `attempts` and `cost_usd` for the current day. Returns
    `{"ok", "reason", "warnings"}`; the first blocking reason wins.
    """
    model_keys = [item.model_key for item in estimate.breakdown]
    attempts_today = int(usage.get("attempts", 0) or 0)
    cost_today = float(usage.get("cost_usd", 0.0) or 0.0)

    high_cost = float(guardrails.get("high_cost_warning_usd", 5.0))
    rate_warning_at = int(guardrails.get("max_models_before_rate_warning", 4))
    call_limit = int(guardrails.get("daily_model_call_limit", 40))
    cost_limit = float(guardrails.get("daily_cost_limit_usd", 25.0))
    warn_ratio = float(guardrails.get("quota_warning_ratio", 0.8))
    budget_models = set(guardrails.get("budget_models", []))

    warnings: List[str] = []
    if estimate.total_usd > high_cost:
        warnings.append("high_cost")
    if len(model_keys) > rate_warning_at:
        warnings.append("rate_limit_risk")
    if call_limit and attempts_today / call_limit >= warn_ratio:
        warnings.append("near_call_quota")
    if cost_limit and cost_today / cost_limit >= warn_ratio:
        warnings.append("near_cost_quota")

    reason = None
    if budget_mode and any(key not in budget_models for key in model_keys):
        reason = "budget_mode"
    elif estimate.total_usd > high_cost and not acknowledged_cost:
        reason = "cost_acknowledgement_required"
    elif attempts_today + len(model_keys) > call_limit:
        reason = "daily_call_limit"
    elif cost_today + estimate.total_usd > cost_limit:
        reason = "daily_cost_limit"

    return {"ok": reason is None, "reason": reason, "warnings": warnings}
