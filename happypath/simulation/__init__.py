"""Offline replay of usage logs through the review prompt gate."""

from happypath.simulation.simulator import SimulatedClock, UsageSimulator, load_usage_log

__all__ = [
    "SimulatedClock",
    "UsageSimulator",
    "load_usage_log",
]
