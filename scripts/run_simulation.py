#!/usr/bin/env python3
"""Replay a usage log through the review prompt gate.

Usage:
    python scripts/run_simulation.py --usage-log data/usage.csv
    python scripts/run_simulation.py --usage-log data/usage.csv --config configs/happypath.yaml
    python scripts/run_simulation.py --usage-log data/usage.csv --min-days-between-prompts 30 -v
"""

from __future__ import annotations

import argparse
import dataclasses
import logging
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from happypath.simulation.simulator import UsageSimulator, load_usage_log
from happypath.utils.config import load_config, policy_from_config, storage_settings


def main():
    parser = argparse.ArgumentParser(
        description="Replay app usage and report when users would be asked for a review"
    )
    parser.add_argument(
        "--usage-log", type=str, required=True,
        help="CSV with columns user_id, timestamp, event (launch/action/active/reset), optional app_version"
    )
    parser.add_argument(
        "--config", type=str, default=str(PROJECT_ROOT / "configs" / "happypath.yaml"),
        help="YAML config with thresholds and storage sections"
    )
    parser.add_argument(
        "--output-dir", type=str, default=str(PROJECT_ROOT / "outputs" / "simulation"),
        help="Where prompts.csv and summary.json are written"
    )
    parser.add_argument(
        "--min-days-between-prompts", type=int, default=None,
        help="Override the configured cooldown (days)"
    )
    parser.add_argument(
        "--no-progress", action="store_true",
        help="Disable the progress bar"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Log every gate decision"
    )
    args = parser.parse_args()

    log_level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    config_path = Path(args.config)
    if config_path.exists():
        config = load_config(config_path)
    else:
        logging.warning(f"Config not found: {config_path} — using default thresholds")
        config = {}

    policy = policy_from_config(config)
    if args.min_days_between_prompts is not None:
        policy = dataclasses.replace(policy, min_days_between_prompts=args.min_days_between_prompts)
    storage = storage_settings(config)

    usage_path = Path(args.usage_log)
    if not usage_path.exists():
        logging.error(f"Usage log not found: {usage_path}")
        sys.exit(1)

    usage = load_usage_log(usage_path)
    logging.info(f"Loaded {len(usage)} events for {usage['user_id'].nunique()} users")
    logging.info(f"  Policy: {policy.to_dict()}")
    logging.info(f"  Output: {args.output_dir}")

    simulator = UsageSimulator(
        policy=policy,
        output_dir=Path(args.output_dir),
        key_prefix=storage["key_prefix"],
        show_progress=not args.no_progress,
    )
    prompts = simulator.run(usage)

    prompted_users = prompts["user_id"].nunique() if len(prompts) else 0
    print(f"\n{len(prompts)} prompts issued to {prompted_users}/{len(simulator.summaries)} users")


if __name__ == "__main__":
    main()
