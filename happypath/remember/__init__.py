"""Persistence for prompt counters and dates."""
