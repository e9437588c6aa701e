"""
tests/conftest.py -- Shared fixtures for the credential utility tests.

This module provides:
  - hasher: a PasswordHasher at bcrypt's minimum cost so tests stay fast
  - counting_entropy: a deterministic, call-counting stand-in for the CSPRNG
  - fresh_settings: clears the lru_cache singletons around a test

PASSWORD_COST must be set before any auth import so the module-level
get_hasher() singleton is built at test cost rather than the production 13.
"""

from __future__ import annotations

import os
from collections.abc import Generator

# CRITICAL: Set before any auth/core import.
os.environ.setdefault("PASSWORD_COST", "4")

import pytest

from auth.passwords import PasswordHasher, get_hasher
from core.config import get_settings
from core.db import close_database


class CountingEntropy:
    """Deterministic byte stream that records every request.

    Bytes cycle through `pattern`, continuing where the previous call left
    off, so the same instance gives the same sequence as a fresh one with
    the same pattern.
    """

    def __init__(self, pattern: bytes = bytes(range(256))) -> None:
        self.pattern = pattern
        self.calls: list[int] = []
        self._pos = 0

    def __call__(self, length: int) -> bytes:
        self.calls.append(length)
        out = bytearray()
        for _ in range(length):
            out.append(self.pattern[self._pos % len(self.pattern)])
            self._pos += 1
        return bytes(out)


@pytest.fixture
def hasher() -> PasswordHasher:
    return PasswordHasher(cost=4)


@pytest.fixture
def counting_entropy() -> CountingEntropy:
    return CountingEntropy()


@pytest.fixture
def fresh_settings() -> Generator[None, None, None]:
    """Clear cached settings/hasher/engine before and after the test."""
    get_settings.cache_clear()
    get_hasher.cache_clear()
    close_database()
    yield
    close_database()
    get_settings.cache_clear()
    get_hasher.cache_clear()


@pytest.fixture
def make_entropy() -> type[CountingEntropy]:
    """Factory for CountingEntropy streams with a custom byte pattern."""
    return CountingEntropy
