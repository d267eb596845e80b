"""Pytest configuration applied to the entire test suite."""

from __future__ import annotations


# Ensure all BDD step definition modules load before feature parsing so
# pytest-bdd can match scenario text to the registered steps, regardless of
# which subset of tests is collected.
pytest_plugins = [
    "tests.e2e.steps.managed_binary_steps",
]
