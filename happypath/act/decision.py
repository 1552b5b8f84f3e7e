"""Review prompt decision logic.

Combines launch counts, significant-action counts and calendar-day windows
(since first launch, since the last prompt, per app version) into a single
decision on whether to ask the platform for a review prompt now. Counters and
dates are kept in an injected store so they survive restarts.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import datetime
from typing import Callable

from happypath.act.platform import ReviewPlatform, UIDispatcher, VersionProvider, run_immediately
from happypath.data.schema import PromptState, ThresholdPolicy
from happypath.remember.store import KeyValueStore
from happypath.utils.dates import calendar_days_between
from happypath.utils.mappings import (
    CHECK_ACTION_COUNT,
    CHECK_COOLDOWN,
    CHECK_FIRST_LAUNCH_MATURITY,
    CHECK_LAUNCH_COUNT,
    DEFAULT_KEY_PREFIX,
    UNKNOWN_VERSION,
    StoreKeys,
)

logger = logging.getLogger(__name__)


@dataclass
class Decision:
    """A review prompt decision."""

    should_prompt: bool
    failed_check: str | None = None
    reasoning: str = ""
    app_version: str = UNKNOWN_VERSION


class PromptDecisionEngine:
    """Decides when to request an app review, and requests it.

    The host constructs one engine at startup and keeps it for the life of the
    process, then forwards lifecycle events to it:

        engine.on_launch()                # once per real launch
        engine.on_app_became_active()     # app comes to the foreground
        engine.on_significant_action()    # user completed something worthwhile

    Constructing the engine records the first launch date if the store has
    none. All public methods may be called from several threads; counter
    updates, each gate-and-dispatch pass and the post-prompt stamp are
    serialized by an internal lock.

    The review request itself is handed to ``dispatcher`` so it runs on the
    host's UI context. Once the platform call has been issued, the engine
    stamps the request date and current app version. It cannot tell whether the
    platform actually showed a prompt, so a silently declined request still
    starts the cooldown.
    """

    def __init__(
        self,
        store: KeyValueStore,
        platform: ReviewPlatform,
        policy: ThresholdPolicy | None = None,
        *,
        version_provider: VersionProvider | None = None,
        dispatcher: UIDispatcher | None = None,
        clock: Callable[[], datetime] | None = None,
        key_prefix: str = DEFAULT_KEY_PREFIX,
    ) -> None:
        self.store = store
        self.platform = platform
        self.policy = policy or ThresholdPolicy()
        self.version_provider = version_provider
        self.dispatcher = dispatcher or run_immediately
        self.clock = clock or datetime.now
        self.keys = StoreKeys.with_prefix(key_prefix)
        self._lock = threading.RLock()

        self._ensure_first_launch_date()

    def _ensure_first_launch_date(self) -> None:
        with self._lock:
            if not self.store.contains(self.keys.first_launch_date):
                self.store.set_timestamp(self.keys.first_launch_date, self.clock())
                logger.info("First launch date set.")

    def _increment(self, key: str) -> int:
        with self._lock:
            count = self.store.get_int(key) + 1
            self.store.set_int(key, count)
            return count

    def current_version(self) -> str:
        """App version reported by the host, or "Unknown"."""
        value = self.version_provider() if self.version_provider else None
        return value or UNKNOWN_VERSION

    # ------------------------------------------------------------------
    # Host lifecycle hooks
    # ------------------------------------------------------------------

    def on_launch(self) -> None:
        """Count one app launch. Call exactly once per real launch."""
        count = self._increment(self.keys.app_launch_count)
        logger.debug(f"App launch count: {count}")

    def on_significant_action(self) -> Decision:
        """Count one engagement event, then check whether to prompt."""
        count = self._increment(self.keys.significant_action_count)
        logger.debug(f"Significant action count: {count}")
        return self.request_review_if_appropriate()

    def on_app_became_active(self) -> Decision:
        """Check whether to prompt when the app comes to the foreground.

        Launch count and time since first launch are checked first as a cheap
        early exit; anything that gets past them goes through the full gate.
        """
        launches = self.store.get_int(self.keys.app_launch_count)
        if launches < self.policy.min_launches_before_prompt:
            return self._decline(
                CHECK_LAUNCH_COUNT,
                f"launch count {launches} < {self.policy.min_launches_before_prompt}",
            )

        first_launch = self.store.get_timestamp(self.keys.first_launch_date)
        if first_launch is not None:
            days = calendar_days_between(first_launch, self.clock())
            if days < self.policy.min_days_since_first_launch_before_prompt:
                return self._decline(
                    CHECK_FIRST_LAUNCH_MATURITY,
                    f"days since first launch {days} < "
                    f"{self.policy.min_days_since_first_launch_before_prompt}",
                )

        return self.request_review_if_appropriate()

    # ------------------------------------------------------------------
    # Gate
    # ------------------------------------------------------------------

    def evaluate(self) -> Decision:
        """Run the full gate without side effects.

        Checks run in a fixed order and the first failure ends the evaluation:
        cooldown since the last prompt, launch count, significant-action count,
        then time since first launch. The last check only applies to the first
        prompt ever or the first prompt for the current app version.
        """
        now = self.clock()
        current_version = self.current_version()
        policy = self.policy

        last_request = self.store.get_timestamp(self.keys.last_review_request_date)
        if last_request is not None:
            days = calendar_days_between(last_request, now)
            if days < policy.min_days_between_prompts:
                return self._decline(
                    CHECK_COOLDOWN,
                    f"last prompt was {days} days ago, less than {policy.min_days_between_prompts} days",
                    current_version,
                )

        launches = self.store.get_int(self.keys.app_launch_count)
        if launches < policy.min_launches_before_prompt:
            return self._decline(
                CHECK_LAUNCH_COUNT,
                f"launch count {launches} < {policy.min_launches_before_prompt}",
                current_version,
            )

        actions = self.store.get_int(self.keys.significant_action_count)
        if actions < policy.min_significant_actions_before_prompt:
            return self._decline(
                CHECK_ACTION_COUNT,
                f"significant actions {actions} < {policy.min_significant_actions_before_prompt}",
                current_version,
            )

        last_version = self.store.get_string(self.keys.last_version_prompted_for_review)
        if last_version != current_version:
            first_launch = self.store.get_timestamp(self.keys.first_launch_date)
            if first_launch is not None:
                days = calendar_days_between(first_launch, now)
                if days < policy.min_days_since_first_launch_before_prompt:
                    return self._decline(
                        CHECK_FIRST_LAUNCH_MATURITY,
                        f"days since first launch {days} < "
                        f"{policy.min_days_since_first_launch_before_prompt} for initial prompt "
                        f"of version {current_version}",
                        current_version,
                    )

        return Decision(
            should_prompt=True,
            reasoning="all conditions met",
            app_version=current_version,
        )

    def request_review_if_appropriate(self) -> Decision:
        """Run the gate and, if it passes, dispatch the platform review request.

        The gate and the dispatch run under the engine lock, so with an inline
        dispatcher a second caller only sees the gate after the first has
        stamped. A queued dispatcher defers the stamp to the drain, so two
        gate passes before the host drains its queue both issue a request.
        """
        with self._lock:
            decision = self.evaluate()
            if decision.should_prompt:
                logger.info("All conditions met. Requesting review.")
                self.dispatcher(lambda: self._present_review(decision.app_version))
        return decision

    def _present_review(self, app_version: str) -> None:
        """Issue the platform request and stamp the cooldown. Runs on the UI context."""
        scene = self.platform.foreground_scene()
        if scene is None:
            logger.warning("Could not find an active foreground scene to request review.")
            return

        self.platform.request_review(scene)

        with self._lock:
            self.store.set_timestamp(self.keys.last_review_request_date, self.clock())
            self.store.set_string(self.keys.last_version_prompted_for_review, app_version)
        logger.info(f"Review requested. Last prompt date and version ({app_version}) updated.")

    def _decline(
        self, check: str, reason: str, app_version: str | None = None
    ) -> Decision:
        logger.debug(f"Not prompting ({reason}).")
        return Decision(
            should_prompt=False,
            failed_check=check,
            reasoning=reason,
            app_version=app_version or self.current_version(),
        )

    # ------------------------------------------------------------------
    # Maintenance
    # ------------------------------------------------------------------

    def reset_review_prompt_counters(self) -> None:
        """Remove every persisted counter and date, back to fresh-install state.

        Meant for development, testing and user-initiated data resets. The first
        launch date is not re-recorded until the next engine is constructed.
        """
        with self._lock:
            for key in self.keys.all():
                self.store.remove(key)
        logger.info("All review counters reset.")

    def snapshot(self) -> PromptState:
        """Current persisted state, for diagnostics."""
        with self._lock:
            return PromptState(
                app_launch_count=self.store.get_int(self.keys.app_launch_count),
                significant_action_count=self.store.get_int(self.keys.significant_action_count),
                first_launch_date=self.store.get_timestamp(self.keys.first_launch_date),
                last_review_request_date=self.store.get_timestamp(self.keys.last_review_request_date),
                last_version_prompted_for_review=self.store.get_string(
                    self.keys.last_version_prompted_for_review
                ),
            )
