"""Shared fixtures for the mrprimes test suite."""

import os
import sys

import pytest

# Project modules live at the repository root (flat layout)
project_root = os.path.join(os.path.dirname(__file__), "..")
sys.path.insert(0, os.path.abspath(project_root))

from offset_sieve import build_offset_table  # noqa: E402
from prime_search import LockedRandom  # noqa: E402


class FixedWitness:
    """Random source stub: always draws the same value, records requested bounds."""

    def __init__(self, value):
        self.value = value
        self.bounds = []

    def draw(self, bound):
        self.bounds.append(bound)
        return self.value


@pytest.fixture(scope="session")
def default_table():
    return build_offset_table(10000)


@pytest.fixture
def seeded_random():
    return LockedRandom(12345)


@pytest.fixture
def fixed_witness():
    return FixedWitness
