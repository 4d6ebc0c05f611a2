import logging
import math
import random
import secrets
import threading
from typing import Optional

from homocrypt.errors import GenerationError

logger = logging.getLogger(__name__)

SEED_BITS = 128


class RandomState:
    """
    Pseudo-random generator owned by a single cryptosystem instance.

    Seeded once, at construction, from the operating system's secure
    source unless an explicit seed is given. Every draw advances the
    internal state.
    """

    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            seed = secrets.randbits(SEED_BITS)
        elif seed < 0:
            raise ValueError("seed must be non-negative")
        self._rng = random.Random(seed)
        self._lock = threading.Lock()
        logger.debug("[RandomState] Seeded generator")

    def uniform_below(self, bound: int) -> int:
        """Uniform integer in [0, bound)."""
        if bound <= 0:
            raise ValueError("bound must be positive")
        with self._lock:
            return self._rng.randrange(bound)

    def uniform_bits(self, n: int) -> int:
        """Uniform integer in [0, 2^n)."""
        if n < 0:
            raise ValueError("number of bits must be non-negative")
        if n == 0:
            return 0
        with self._lock:
            return self._rng.getrandbits(n)

    def uniform_range(self, low: int, high: int) -> int:
        """Uniform integer in [low, high]."""
        if high < low:
            raise ValueError("empty range")
        return low + self.uniform_below(high - low + 1)

    def uniform_unit(self, n: int, max_retries: int) -> int:
        """Uniform element of [0, n) coprime to n, by rejection sampling."""
        for _ in range(max_retries):
            r = self.uniform_below(n)
            if math.gcd(r, n) == 1:
                return r
        raise GenerationError(f"no unit modulo n after {max_retries} samples")
