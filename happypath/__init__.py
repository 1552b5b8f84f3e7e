"""HappyPath: decides when to ask a user to rate or review the app."""

from happypath.act.decision import Decision, PromptDecisionEngine
from happypath.act.platform import (
    QueuedDispatcher,
    RecordingPlatform,
    ReviewPlatform,
    distribution_version,
    run_immediately,
    static_version,
)
from happypath.data.schema import PromptState, ThresholdPolicy
from happypath.remember.store import InMemoryStore, JsonFileStore, KeyValueStore

__all__ = [
    "Decision",
    "InMemoryStore",
    "JsonFileStore",
    "KeyValueStore",
    "PromptDecisionEngine",
    "PromptState",
    "QueuedDispatcher",
    "RecordingPlatform",
    "ReviewPlatform",
    "ThresholdPolicy",
    "distribution_version",
    "run_immediately",
    "static_version",
]
