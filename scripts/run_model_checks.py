#!/usr/bin/env python3
"""Pre-publish checks for an ePSA calculator configuration.

Loads a configuration (the bundled default, or a candidate YAML file),
prints its formula and tables, reviews the weights against the guidelines
and scores a cohort, so an editor can see the effect of new coefficients
before publishing them through the admin API.

Without ``--records`` the cohort is a random sweep of synthetic patients
across the validated age/BMI ranges.

Usage::

    # Install deps (first time only)
    uv pip install -e ".[scripts]"

    # Check the bundled default
    uv run python scripts/run_model_checks.py

    # Check a candidate file against a cohort export
    uv run python scripts/run_model_checks.py -c candidate.yaml -r cohort.json

    # Compare with an A/B variant, fail on any guideline warning
    uv run python scripts/run_model_checks.py --variant variant_b --strict

    # Reproducible synthetic sweep
    uv run python scripts/run_model_checks.py -n 500 --seed 42
"""

from __future__ import annotations

import argparse
import json
import random
import sys
import time
from pathlib import Path
from typing import Any

from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

# ---------------------------------------------------------------------------
# Ensure src/ is importable when run from a checkout without installing.
# ---------------------------------------------------------------------------
_SCRIPT_DIR = Path(__file__).resolve().parent
_REPO_ROOT = _SCRIPT_DIR.parent
sys.path.insert(0, str(_REPO_ROOT / "src"))

from epsa_engine.cohort import CohortSummary, simulate_cohort  # noqa: E402
from epsa_engine.config_store import ModelConfigStore, load_model_config  # noqa: E402
from epsa_engine.documentation import describe_model  # noqa: E402
from epsa_engine.guidelines import review_config  # noqa: E402
from epsa_engine.models.config import ModelConfig  # noqa: E402
from epsa_engine.models.results import RiskTier  # noqa: E402

TIER_STYLES = {
    RiskTier.LOWER: "green",
    RiskTier.MODERATE: "yellow",
    RiskTier.HIGHER: "red",
}

RACES = ["white", "black", "asian", "hispanic", "other"]


# ---------------------------------------------------------------------------
# Cohort sources
# ---------------------------------------------------------------------------

def synthetic_cohort(rng: random.Random, size: int, config: ModelConfig) -> list[dict[str, Any]]:
    """Random but valid answer records spread over the configured ranges."""
    limits = config.validation
    records = []
    for _ in range(size):
        records.append({
            "age": rng.randint(max(40, int(limits.min_age)), min(85, int(limits.max_age))),
            "race": rng.choice(RACES),
            "bmi": round(rng.uniform(max(18.0, limits.min_bmi), min(40.0, limits.max_bmi)), 1),
            "exercise": rng.choice([0, 1, 2]),
            "family_history": rng.choice([0, 0, 0, 1, 2]),
            "ipss": [rng.randint(0, 5) for _ in range(7)],
            "shim": [rng.randint(0, 5) for _ in range(5)],
        })
    return records


def load_records(path: Path) -> list[dict[str, Any]]:
    with path.open("r", encoding="utf-8") as f:
        data = json.load(f)
    # Accept a bare list or the admin API body shape {"records": [...]}
    if isinstance(data, dict):
        data = data.get("records", [])
    return data


# ---------------------------------------------------------------------------
# Output
# ---------------------------------------------------------------------------

def print_description(console: Console, config: ModelConfig) -> None:
    description = describe_model(config)
    console.print(f"\n[bold cyan]Model {description.version}[/]")
    for line in description.formula:
        console.print(f"  {line}")

    table = Table(title="Stage 1 variables")
    table.add_column("Variable")
    table.add_column("Weight", justify="right")
    table.add_column("Direction")
    table.add_column("Scored")
    for var in description.variables:
        table.add_row(var.name, f"{var.weight:g}", var.direction, "yes" if var.scored else "[dim]no[/]")
    console.print(table)

    for line in description.tiers:
        console.print(f"  {line}")
    console.print("\n[bold]Stage 2 points[/]")
    for line in description.points:
        console.print(f"  {line}")


def print_review(console: Console, warnings: list[str]) -> None:
    if not warnings:
        console.print("\n[green]✓[/] Weights within guidelines")
        return
    console.print(f"\n[yellow]{len(warnings)} guideline warning(s):[/]")
    for warning in warnings:
        console.print(f"  [yellow]![/] {warning}")


def print_summaries(console: Console, summaries: list[CohortSummary]) -> None:
    table = Table(title="Cohort simulation")
    table.add_column("Model")
    table.add_column("Scored", justify="right")
    table.add_column("Skipped", justify="right")
    table.add_column("Avg risk", justify="right")
    for tier in RiskTier:
        table.add_column(tier.value.title(), justify="right", style=TIER_STYLES[tier])

    for summary in summaries:
        avg = "-" if summary.avg_predicted_risk is None else f"{summary.avg_predicted_risk}%"
        table.add_row(
            summary.model_version,
            str(summary.scored),
            str(summary.skipped),
            avg,
            *(str(summary.tier_counts[tier]) for tier in RiskTier),
        )
    console.print(table)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def parse_args() -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Review and simulate an ePSA configuration before publishing it.",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        help="Candidate configuration YAML (default: the bundled v1/model/default.yaml)",
    )
    parser.add_argument(
        "-m", "--model-dir",
        type=Path,
        help="Directory holding default.yaml and the catalogue files (default: v1/model)",
    )
    parser.add_argument(
        "-r", "--records",
        type=Path,
        help="JSON file of answer records to simulate (default: a synthetic sweep)",
    )
    parser.add_argument(
        "-n", "--size",
        type=int, default=200,
        help="Number of synthetic patients when --records is not given (default: 200)",
    )
    parser.add_argument("--seed", type=int, default=None, help="RNG seed for the synthetic sweep")
    parser.add_argument(
        "--variant",
        help="Also simulate this A/B variant of the configuration",
    )
    parser.add_argument(
        "--strict",
        action="store_true",
        help="Exit with status 1 if the guideline review reports any warning",
    )
    return parser.parse_args()


def main() -> None:
    args = parse_args()
    console = Console()

    store = ModelConfigStore(args.model_dir)
    try:
        store.load()
        config = load_model_config(args.config) if args.config else store.current
    except (FileNotFoundError, ValidationError) as exc:
        console.print(f"[red]Configuration rejected:[/] {exc}")
        sys.exit(1)

    print_description(console, config)
    warnings = review_config(config, store.guidelines)
    print_review(console, warnings)

    if args.records:
        records = load_records(args.records)
        console.print(f"\n[dim]{len(records)} record(s) from {args.records}[/]")
    else:
        seed = args.seed if args.seed is not None else int(time.time())
        console.print(f"\n[dim]RNG seed: {seed}[/]")
        records = synthetic_cohort(random.Random(seed), args.size, config)

    summaries = [simulate_cohort(records, config)]
    if args.variant:
        try:
            summaries.append(simulate_cohort(records, store.variant_config(args.variant, base=config)))
        except KeyError:
            console.print(f"[red]Unknown variant:[/] '{args.variant}'")
            console.print(f"Available: {', '.join(v.name for v in store.variants)}")
            sys.exit(1)
    print_summaries(console, summaries)

    if args.strict and warnings:
        sys.exit(1)


if __name__ == "__main__":
    main()
