"""Dataclass definitions for the review prompt gate.

Defines the tunable thresholds and a read-only snapshot of the persisted
prompt state, matching the keys the engine keeps in its store.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import datetime
from typing import Any, Mapping


@dataclass(frozen=True)
class ThresholdPolicy:
    """Thresholds that must all be met before a review prompt is requested.

    Zero makes a condition always satisfied; a very large value effectively
    disables prompting.
    """

    # Minimum app launches before a prompt can be considered
    min_launches_before_prompt: int = 5
    # Minimum significant actions before a prompt can be considered
    min_significant_actions_before_prompt: int = 3
    # Minimum days since first launch for the first prompt (and each new version)
    min_days_since_first_launch_before_prompt: int = 7
    # Minimum days between consecutive prompts (about 3 months)
    min_days_between_prompts: int = 90

    def __post_init__(self) -> None:
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, int):
                raise ValueError(f"{f.name} must be an integer, got {value!r}")
            if value < 0:
                raise ValueError(f"{f.name} must be non-negative, got {value}")

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> ThresholdPolicy:
        """Build a policy from a config section.

        Missing keys take their defaults; unknown keys are rejected so that a
        typo in a config file does not silently fall back to a default.
        """
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown threshold keys: {unknown}")
        return cls(**data)

    def to_dict(self) -> dict[str, int]:
        return asdict(self)


@dataclass
class PromptState:
    """Snapshot of everything the engine persists between launches."""

    app_launch_count: int = 0
    significant_action_count: int = 0
    first_launch_date: datetime | None = None
    last_review_request_date: datetime | None = None
    last_version_prompted_for_review: str | None = None
