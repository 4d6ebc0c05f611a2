"""Shared pytest fixtures for the homocrypt test suite."""

import pytest

from homocrypt.config import Settings
from homocrypt.encryption.gm_encryption import GoldwasserMicali
from homocrypt.encryption.paillier_encryption import Paillier
from homocrypt.random_state import RandomState

TEST_KEY_SIZE = 256


@pytest.fixture()
def random_state():
    return RandomState(seed=20240611)


@pytest.fixture(scope="session")
def settings():
    return Settings(key_size=TEST_KEY_SIZE)


@pytest.fixture(scope="session")
def gm(settings):
    """A small Goldwasser-Micali instance shared by the whole session."""
    return GoldwasserMicali(settings=settings)


@pytest.fixture(scope="session")
def paillier(settings):
    """A small Paillier instance shared by the whole session."""
    return Paillier(settings=settings)


class FixedBitsState(RandomState):
    """Bit draws of the listed widths always return the listed value."""

    def __init__(self, fixed, seed=1):
        super().__init__(seed=seed)
        self.fixed = fixed

    def uniform_bits(self, n):
        if n in self.fixed:
            return self.fixed[n]
        return super().uniform_bits(n)


class ZeroBelowState(RandomState):
    """Every bounded draw returns 0."""

    def uniform_below(self, bound):
        return 0
