"""Command line entrypoint: list models, estimate, or run a prompt."""

from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Any, Dict, List

from dotenv import load_dotenv

from .config import load_settings
from .ledger import apply_migrations, get_connection, get_usage_since, record_results
from .llm.credentials import parse_key_args
from .llm.registry import DEFAULT_REGISTRY
from .llm.runner import build_runner
from .llm.types import GenerationConfig
from .preflight import check_run, estimate_run
from .utils import start_of_day_iso


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Run one prompt against several AI models")
    parser.add_argument("--settings", default="config/settings.yaml", help="Path to settings.yaml")
    parser.add_argument("--log-level", default="WARNING", help="Logging level")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("models", help="List supported models and pricing")
    subparsers.add_parser("init-db", help="Apply SQLite migrations only")

    for name, help_text in (("estimate", "Estimate the cost of a run"), ("run", "Run a prompt")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--prompt", required=True)
        sub.add_argument("--model", dest="models", action="append", required=True, help="Model key, repeatable")
        sub.add_argument("--temperature", type=float)
        sub.add_argument("--max-tokens", type=int)
        sub.add_argument("--top-p", type=float)
        sub.add_argument("--frequency-penalty", type=float)
        sub.add_argument("--presence-penalty", type=float)
        if name == "run":
            sub.add_argument("--key", dest="keys", action="append", default=[], help="provider=secret override")
            sub.add_argument("--user", default="local", help="Ledger user id")
            sub.add_argument("--budget-mode", action="store_true")
            sub.add_argument("--acknowledge-cost", action="store_true")
            sub.add_argument("--skip-guardrails", action="store_true")
    return parser


def _generation_config(args: argparse.Namespace, settings: Dict[str, Any]) -> GenerationConfig:
    # Flags win over the settings defaults.
    values: Dict[str, Any] = dict(settings.get("generation") or {})
    flags = {
        "temperature": args.temperature,
        "max_output_tokens": args.max_tokens,
        "top_p": args.top_p,
        "frequency_penalty": args.frequency_penalty,
        "presence_penalty": args.presence_penalty,
    }
    values.update({key: value for key, value in flags.items() if value is not None})
    return GenerationConfig.from_dict(values)


def _print_json(data: Any) -> None:
    print(json.dumps(data, indent=2, ensure_ascii=False))


def _list_models() -> None:
    for model in DEFAULT_REGISTRY:
        print(
            f"{model.key:<20} {model.provider.value:<10} {model.provider_model_id:<28} "
            f"in=${model.cost_per_1k_input}/1K out=${model.cost_per_1k_output}/1K"
        )


def _estimate(args: argparse.Namespace, settings: Dict[str, Any]) -> None:
    config = _generation_config(args, settings)
    estimate = estimate_run(
        args.prompt,
        args.models,
        max_output_tokens=int(config.max_output_tokens or 0),
        default_prompt_tokens=int(settings["guardrails"]["default_prompt_token_estimate"]),
    )
    _print_json(
        {
            "assumed_input_tokens": estimate.assumed_input_tokens,
            "max_output_tokens": estimate.max_output_tokens,
            "total_usd": estimate.total_usd,
            "breakdown": [
                {"model": item.model_key, "cost_usd": item.cost_usd} for item in estimate.breakdown
            ],
        }
    )


def _run(args: argparse.Namespace, settings: Dict[str, Any]) -> int:
    config = _generation_config(args, settings)
    overrides = parse_key_args(args.keys)
    db_path = settings["database"]["path"]
    apply_migrations(db_path)

    with get_connection(db_path) as conn:
        if not args.skip_guardrails:
            estimate = estimate_run(
                args.prompt,
                args.models,
                max_output_tokens=int(config.max_output_tokens or 0),
                default_prompt_tokens=int(settings["guardrails"]["default_prompt_token_estimate"]),
            )
            usage = get_usage_since(conn, args.user, start_of_day_iso())
            verdict = check_run(
                estimate,
                usage,
                settings["guardrails"],
                acknowledged_cost=args.acknowledge_cost,
                budget_mode=args.budget_mode,
            )
            for warning in verdict["warnings"]:
                print(f"warning: {warning}", file=sys.stderr)
            if not verdict["ok"]:
                print(f"Run blocked: {verdict['reason']}", file=sys.stderr)
                return 2

        runner = build_runner(settings)
        results = runner.execute_model_runs(
            args.prompt.strip(),
            args.models,
            config=config,
            credential_overrides=overrides,
        )
        record_results(conn, args.user, args.prompt.strip(), args.models, results)

    payload: List[Dict[str, Any]] = [result.to_dict() for result in results]
    _print_json({"results": payload})
    return 0


def main(argv: List[str] | None = None) -> int:
    load_dotenv()
    parser = _build_parser()
    args = parser.parse_args(argv)
    command = args.command or "models"
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    settings = load_settings(args.settings)

    if command == "models":
        _list_models()
        return 0

    if command == "init-db":
        db_path = settings["database"]["path"]
        apply_migrations(db_path)
        print(f"Database initialized at {db_path}")
        return 0

    try:
        if command == "estimate":
            _estimate(args, settings)
            return 0
        return _run(args, settings)
    except ValueError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 2
