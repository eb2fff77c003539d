"""Shared fixtures for the TOTP engine tests."""
from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

RFC_SECRET = b"12345678901234567890"


class FrozenClock:
    """Clock returning a fixed instant that tests can move around."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, delta: timedelta) -> None:
        self.now += delta


@pytest.fixture
def clock():
    return FrozenClock(datetime(2024, 1, 1, 0, 1, 30, tzinfo=timezone.utc))


@pytest.fixture
def rfc_secret():
    return RFC_SECRET
