"""Shared pytest fixtures for all test modules."""

from __future__ import annotations

from datetime import datetime

import pytest

from happypath.act.decision import PromptDecisionEngine
from happypath.act.platform import RecordingPlatform, static_version
from happypath.data.schema import ThresholdPolicy
from happypath.remember.store import InMemoryStore
from happypath.simulation.simulator import SimulatedClock
from happypath.utils.mappings import StoreKeys

# Midday, so advancing by whole days never crosses a date boundary by accident
START = datetime(2026, 3, 2, 12, 0, 0)


@pytest.fixture
def start():
    return START


@pytest.fixture
def keys():
    return StoreKeys.with_prefix()


@pytest.fixture
def clock(start):
    return SimulatedClock(start)


@pytest.fixture
def store():
    return InMemoryStore()


@pytest.fixture
def platform(clock):
    return RecordingPlatform(clock=clock)


@pytest.fixture
def default_policy():
    return ThresholdPolicy()


@pytest.fixture
def make_engine(store, platform, clock):
    """Factory building an engine over the shared store, platform and clock."""

    def _make(policy=None, version="1.0", **kwargs):
        return PromptDecisionEngine(
            store,
            platform,
            policy or ThresholdPolicy(),
            version_provider=static_version(version),
            clock=clock,
            **kwargs,
        )

    return _make


@pytest.fixture
def engine(make_engine):
    return make_engine()
