"""UsageSimulator: replays recorded app usage through the review prompt gate.

Each user's events (launch, action, active, reset) are replayed in time order
against a fresh in-memory store, with a simulated clock set to each event's
timestamp. Every ``launch`` event stands for a process start, so the engine is
rebuilt on it the way a host app constructs it at startup. Prompts are captured
by a RecordingPlatform instead of being shown.

Useful for tuning thresholds offline: run the same usage log under different
policies and compare how often and how early users would have been asked.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pandas as pd
from tqdm import tqdm

from happypath.act.decision import PromptDecisionEngine
from happypath.act.platform import RecordingPlatform
from happypath.data.schema import ThresholdPolicy
from happypath.remember.store import InMemoryStore
from happypath.utils.mappings import (
    DEFAULT_KEY_PREFIX,
    EVENT_ACTION,
    EVENT_ACTIVE,
    EVENT_LAUNCH,
    EVENT_RESET,
    USAGE_EVENTS,
)

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ["user_id", "timestamp", "event"]
PROMPT_COLUMNS = ["user_id", "timestamp", "app_version", "trigger"]


class SimulatedClock:
    """Clock whose current time is set by the caller."""

    def __init__(self, start: datetime) -> None:
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs: float) -> datetime:
        """Move forward by a timedelta given as keyword arguments (days=, hours=...)."""
        self.now = self.now + timedelta(**kwargs)
        return self.now


# ---------------------------------------------------------------------------
# Usage log loading
# ---------------------------------------------------------------------------

def prepare_usage_log(df: pd.DataFrame) -> pd.DataFrame:
    """Validate and normalize a usage log.

    Raises:
        ValueError: if required columns are missing or an event type is unknown.
    """
    missing = [c for c in REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        raise ValueError(f"Usage log is missing columns: {missing}")

    df = df.copy()
    df["user_id"] = df["user_id"].astype(str)
    df["timestamp"] = pd.to_datetime(df["timestamp"])
    df["event"] = df["event"].astype(str).str.strip().str.lower()
    if "app_version" not in df.columns:
        df["app_version"] = None

    unknown = sorted(set(df["event"]) - set(USAGE_EVENTS))
    if unknown:
        raise ValueError(f"Unknown usage events {unknown}; expected one of {USAGE_EVENTS}")

    return df.sort_values(["user_id", "timestamp"], kind="stable").reset_index(drop=True)


def load_usage_log(path: Path) -> pd.DataFrame:
    """Load a usage log CSV with columns user_id, timestamp, event[, app_version]."""
    return prepare_usage_log(pd.read_csv(path, dtype={"user_id": str, "app_version": str}))


# ---------------------------------------------------------------------------
# Simulator
# ---------------------------------------------------------------------------

class UsageSimulator:
    """Replays usage logs through PromptDecisionEngine, one user at a time."""

    def __init__(
        self,
        policy: ThresholdPolicy | None = None,
        output_dir: Path | None = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
        show_progress: bool = True,
    ) -> None:
        self.policy = policy or ThresholdPolicy()
        self.output_dir = output_dir
        self.key_prefix = key_prefix
        self.show_progress = show_progress
        self.summaries: dict[str, dict[str, Any]] = {}

    def run(self, usage: pd.DataFrame) -> pd.DataFrame:
        """Replay every user in the log.

        Returns:
            DataFrame of issued prompts with columns user_id, timestamp,
            app_version, trigger.
        """
        usage = prepare_usage_log(usage)
        prompts: list[dict] = []
        self.summaries = {}

        groups = usage.groupby("user_id", sort=True)
        for user_id, events in tqdm(groups, desc="Users", disable=not self.show_progress):
            user_prompts, summary = self.simulate_user(str(user_id), events)
            prompts.extend(user_prompts)
            self.summaries[str(user_id)] = summary

        prompts_df = pd.DataFrame(prompts, columns=PROMPT_COLUMNS)
        logger.info(
            f"Simulated {len(self.summaries)} users, {len(usage)} events, "
            f"{len(prompts_df)} prompts"
        )

        if self.output_dir is not None:
            self.save(prompts_df)
        return prompts_df

    def simulate_user(
        self, user_id: str, events: pd.DataFrame
    ) -> tuple[list[dict], dict[str, Any]]:
        """Replay one user's events in order against a fresh store."""
        events = events.sort_values("timestamp", kind="stable")
        store = InMemoryStore()
        clock = SimulatedClock(events["timestamp"].iloc[0].to_pydatetime())
        platform = RecordingPlatform(clock=clock)
        app = {"version": None}
        engine: PromptDecisionEngine | None = None
        prompts: list[dict] = []

        def build_engine() -> PromptDecisionEngine:
            return PromptDecisionEngine(
                store,
                platform,
                self.policy,
                version_provider=lambda: app["version"],
                clock=clock,
                key_prefix=self.key_prefix,
            )

        for row in events.itertuples(index=False):
            clock.now = row.timestamp.to_pydatetime()
            if isinstance(row.app_version, str) and row.app_version.strip():
                app["version"] = row.app_version.strip()
            elif row.app_version is not None and not pd.isna(row.app_version):
                app["version"] = str(row.app_version)

            n_before = platform.request_count
            if row.event == EVENT_LAUNCH:
                engine = build_engine()
                engine.on_launch()
                continue

            if engine is None:
                engine = build_engine()
            if row.event == EVENT_ACTION:
                engine.on_significant_action()
            elif row.event == EVENT_ACTIVE:
                engine.on_app_became_active()
            elif row.event == EVENT_RESET:
                engine.reset_review_prompt_counters()

            if platform.request_count > n_before:
                prompts.append({
                    "user_id": user_id,
                    "timestamp": clock.now,
                    "app_version": engine.current_version(),
                    "trigger": row.event,
                })

        state = engine.snapshot() if engine is not None else None
        summary = {
            "n_events": len(events),
            "n_launches": int((events["event"] == EVENT_LAUNCH).sum()),
            "n_actions": int((events["event"] == EVENT_ACTION).sum()),
            "n_prompts": len(prompts),
            "first_prompt": prompts[0]["timestamp"].isoformat() if prompts else None,
            "final_launch_count": state.app_launch_count if state else 0,
            "final_action_count": state.significant_action_count if state else 0,
        }
        return prompts, summary

    def save(self, prompts_df: pd.DataFrame) -> None:
        """Write prompts.csv and summary.json to the output directory."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        prompts_df.to_csv(self.output_dir / "prompts.csv", index=False)
        with open(self.output_dir / "summary.json", "w") as f:
            json.dump(
                {"policy": self.policy.to_dict(), "users": self.summaries},
                f,
                indent=2,
            )
        logger.info(f"Results saved to: {self.output_dir}")
