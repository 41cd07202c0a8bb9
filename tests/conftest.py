from __future__ import annotations

from datetime import datetime

import pytest

from tests.fakes import demo_world


@pytest.fixture
def fixed_now() -> datetime:
    return datetime(2026, 3, 14, 9, 0, 0)


@pytest.fixture
def world():
    return demo_world()
