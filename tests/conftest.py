"""Pytest configuration shared by the unit and backend suites.

Puts the repository root on sys.path so `hotelops_lib` and
`tests.helpers` import without an installed package, and provides a
fresh fake remote key/value client per test.
"""
import sys
from pathlib import Path

import pytest


def pytest_configure(config):
    # Insert repo root (one level up from tests/) to sys.path
    repo_root = Path(__file__).resolve().parents[1]
    sys.path.insert(0, str(repo_root))


@pytest.fixture
def fake_redis():
    from tests.helpers import FakeRedis

    return FakeRedis()
