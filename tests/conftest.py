from __future__ import annotations

import itertools

import pytest

from splitbill.config import Settings


@pytest.fixture
def id_factory():
    counter = itertools.count(1)
    return lambda: f"id-{next(counter)}"


@pytest.fixture
def settings() -> Settings:
    return Settings(
        DATABASE_URL=None,
        DEFAULT_TAX_RATE=0,
        DEFAULT_SERVICE_RATE=0,
        PROTECT_OWNER=True,
    )
