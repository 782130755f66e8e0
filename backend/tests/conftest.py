"""Shared test fixtures for orderflow."""

from __future__ import annotations

import pytest

from orderflow.config import GuardConfig
from orderflow.store.fake.store import InMemoryOrderStore
from orderflow.utils.time import ManualClock


@pytest.fixture
def clock() -> ManualClock:
    return ManualClock()


@pytest.fixture
def store() -> InMemoryOrderStore:
    return InMemoryOrderStore()


@pytest.fixture
def guard_config() -> GuardConfig:
    """Default thresholds without the debounce delay.

    Tests run scheduled pushes with ``await guard.drain()``.
    """
    return GuardConfig(debounce_seconds=0.0)
