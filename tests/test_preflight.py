import pytest

from prompt_playground.config import DEFAULT_SETTINGS
from prompt_playground.llm.costs import estimate_cost, estimate_preflight_cost, estimate_prompt_tokens
from prompt_playground.llm.registry import MODELS
from prompt_playground.llm.types import UnknownModelError
from prompt_playground.preflight import ModelEstimate, RunEstimate, check_run, estimate_run

GUARDRAILS = DEFAULT_SETTINGS["guardrails"]


def _estimate(total_per_model, keys):
    return RunEstimate(
        assumed_input_tokens=100,
        max_output_tokens=1000,
        breakdown=[ModelEstimate(model_key=k, display_name=k, cost_usd=total_per_model) for k in keys],
    )


def test_estimate_run_breakdown_uses_shared_formula():
    prompt = " ".join(["word"] * 30)
    estimate = estimate_run(prompt, ["gpt-4o-mini", "gemini-flash"], max_output_tokens=500)

    tokens = estimate_prompt_tokens(prompt)
    assert estimate.assumed_input_tokens == tokens
    assert estimate.cost_for("gpt-4o-mini") == estimate_cost(MODELS["gpt-4o-mini"], tokens, 500)
    assert estimate.cost_for("gemini-flash") == estimate_cost(MODELS["gemini-flash"], tokens, 500)
    assert estimate.total_usd == pytest.approx(
        estimate.cost_for("gpt-4o-mini") + estimate.cost_for("gemini-flash")
    )
    assert estimate.cost_for("gpt-4o") is None


def test_blank_prompt_uses_default_token_estimate():
    estimate = estimate_run("", ["claude-3-5-haiku"], max_output_tokens=1000)
    assert estimate.assumed_input_tokens == 120


def test_estimate_rejects_unknown_models():
    with pytest.raises(UnknownModelError):
        estimate_run("hi", ["made-up"], max_output_tokens=10)


def test_cheap_run_passes():
    verdict = check_run(_estimate(0.01, ["gpt-4o-mini"]), {"attempts": 0, "cost_usd": 0}, GUARDRAILS)
    assert verdict == {"ok": True, "reason": None, "warnings": []}


def test_high_cost_needs_acknowledgement():
    estimate = _estimate(3.0, ["gpt-4o", "gpt-4-turbo"])

    blocked = check_run(estimate, {"attempts": 0, "cost_usd": 0}, GUARDRAILS)
    assert blocked["ok"] is False
    assert blocked["reason"] == "cost_acknowledgement_required"
    assert "high_cost" in blocked["warnings"]

    allowed = check_run(estimate, {"attempts": 0, "cost_usd": 0}, GUARDRAILS, acknowledged_cost=True)
    assert allowed["ok"] is True


def test_budget_mode_blocks_premium_models():
    verdict = check_run(
        _estimate(0.01, ["gpt-4o-mini", "gpt-4o"]),
        {"attempts": 0, "cost_usd": 0},
        GUARDRAILS,
        budget_mode=True,
    )
    assert verdict["reason"] == "budget_mode"


def test_daily_limits():
    keys = ["gpt-4o-mini", "gemini-flash"]

    calls = check_run(_estimate(0.01, keys), {"attempts": 39, "cost_usd": 0}, GUARDRAILS)
    assert calls["reason"] == "daily_call_limit"
    assert "near_call_quota" in calls["warnings"]

    cost = check_run(_estimate(1.0, keys), {"attempts": 0, "cost_usd": 24.0}, GUARDRAILS)
    assert cost["reason"] == "daily_cost_limit"
    assert "near_cost_quota" in cost["warnings"]


def test_many_models_warn_about_rate_limits():
    keys = list(MODELS)[:5]
    verdict = check_run(_estimate(0.01, keys), {"attempts": 0, "cost_usd": 0}, GUARDRAILS)
    assert verdict["ok"] is True
    assert verdict["warnings"] == ["rate_limit_risk"]


def test_estimate_run_prices_through_preflight_helper():
    estimate = estimate_run("", ["gpt-4o"], max_output_tokens=400, default_prompt_tokens=90)

    assert estimate.assumed_input_tokens == 90
    assert estimate.cost_for("gpt-4o") == estimate_preflight_cost(
        MODELS["gpt-4o"], "", 400, default_prompt_tokens=90
    )
