"""Domain constants and storage key names for the review prompt gate."""

from __future__ import annotations

from dataclasses import dataclass

# Prefix on every persisted key, to avoid clashing with the host's own keys
DEFAULT_KEY_PREFIX = "hp_"

# Persisted when the host cannot report its version
UNKNOWN_VERSION = "Unknown"

# --- Gate checks, in evaluation order ---

CHECK_COOLDOWN = "cooldown"
CHECK_LAUNCH_COUNT = "launch_count"
CHECK_ACTION_COUNT = "action_count"
CHECK_FIRST_LAUNCH_MATURITY = "first_launch_maturity"

# --- Usage log events understood by the simulator ---

EVENT_LAUNCH = "launch"
EVENT_ACTION = "action"
EVENT_ACTIVE = "active"
EVENT_RESET = "reset"

USAGE_EVENTS = [EVENT_LAUNCH, EVENT_ACTION, EVENT_ACTIVE, EVENT_RESET]


@dataclass(frozen=True)
class StoreKeys:
    """Names of the five persisted fields under a given prefix."""

    app_launch_count: str
    significant_action_count: str
    first_launch_date: str
    last_review_request_date: str
    last_version_prompted_for_review: str

    @classmethod
    def with_prefix(cls, prefix: str = DEFAULT_KEY_PREFIX) -> StoreKeys:
        return cls(
            app_launch_count=f"{prefix}appLaunchCount",
            significant_action_count=f"{prefix}significantActionCount",
            first_launch_date=f"{prefix}firstLaunchDate",
            last_review_request_date=f"{prefix}lastReviewRequestDate",
            last_version_prompted_for_review=f"{prefix}lastVersionPromptedForReview",
        )

    def all(self) -> list[str]:
        return [
            self.app_launch_count,
            self.significant_action_count,
            self.last_review_request_date,
            self.last_version_prompted_for_review,
            self.first_launch_date,
        ]
