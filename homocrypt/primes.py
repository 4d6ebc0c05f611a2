"""
Random prime generation for key setup.

Everything here draws its randomness from a caller-owned RandomState, so
two generators never share state. All search loops are bounded: running
out of attempts raises GenerationError rather than spinning forever.
"""
import logging
import time
from typing import Callable, Optional, Tuple

import sympy
from sympy.ntheory.primetest import mr

from homocrypt.errors import (
    ConfigurationError,
    GenerationCancelled,
    GenerationError,
    GenerationTimeout,
)
from homocrypt.random_state import RandomState

logger = logging.getLogger(__name__)

DEFAULT_ROUNDS = 40
DEFAULT_MAX_RETRIES = 10_000

SMALL_PRIMES = tuple(sympy.primerange(2, 256))


def next_prime(value: int) -> int:
    """Smallest prime greater than or equal to value."""
    # sympy.nextprime is strictly greater than its argument
    return sympy.nextprime(value - 1)


def is_probable_prime(value: int, rounds: int, random_state: RandomState) -> bool:
    """
    Miller-Rabin test with `rounds` random bases.

    A composite passes with probability at most 4^-rounds. Small values
    are settled by trial division before any base is drawn.
    """
    if value < 2:
        return False
    for p in SMALL_PRIMES:
        if value == p:
            return True
        if value % p == 0:
            return False
    if value < SMALL_PRIMES[-1] ** 2:
        return True
    bases = [random_state.uniform_range(2, value - 2) for _ in range(rounds)]
    return mr(value, bases)


class PrimeGenerator:
    """Uniform, prime and strong-prime sampling with exact bit lengths."""

    def __init__(
        self,
        random_state: RandomState,
        rounds: int = DEFAULT_ROUNDS,
        max_retries: int = DEFAULT_MAX_RETRIES,
        timeout: Optional[float] = None,
        cancel: Optional[Callable[[], bool]] = None,
    ):
        """
        Args:
            random_state: Generator every draw comes from
            rounds: Miller-Rabin rounds used to accept a strong prime
            max_retries: Ceiling for each resampling loop
            timeout: Seconds, counted from now, for all generation done here
            cancel: Polled inside the search loops; returning True aborts
        """
        if rounds < 1:
            raise ConfigurationError("rounds must be at least 1")
        if max_retries < 1:
            raise ConfigurationError("max_retries must be at least 1")
        self.random_state = random_state
        self.rounds = rounds
        self.max_retries = max_retries
        self.cancel = cancel
        self._deadline = None if timeout is None else time.monotonic() + timeout

    def _checkpoint(self) -> None:
        if self.cancel is not None and self.cancel():
            raise GenerationCancelled("prime generation cancelled")
        if self._deadline is not None and time.monotonic() > self._deadline:
            raise GenerationTimeout("prime generation timed out")

    def uniform_bits(self, length: int) -> int:
        """Integer with exactly `length` bits: top bit set, the rest uniform."""
        if length < 1:
            raise ConfigurationError(f"bit length must be at least 1, got {length}")
        top = 1 << (length - 1)
        return top | self.random_state.uniform_bits(length - 1)

    def is_probable_prime(self, value: int) -> bool:
        return is_probable_prime(value, self.rounds, self.random_state)

    def random_prime(self, length: int) -> int:
        """
        Random prime of exactly `length` bits.

        Samples a `length`-bit integer and moves to the next prime; primes
        that carried into the next bit length are rejected and resampled.
        """
        if length < 2:
            raise ConfigurationError(f"prime bit length must be at least 2, got {length}")
        for attempt in range(1, self.max_retries + 1):
            self._checkpoint()
            p = next_prime(self.uniform_bits(length))
            if p.bit_length() == length:
                logger.debug("[Prime] %d-bit prime found after %d sample(s)", length, attempt)
                return p
        raise GenerationError(
            f"no {length}-bit prime after {self.max_retries} samples"
        )

    def strong_prime_with_factor(self, length: int) -> Tuple[int, int]:
        """
        Strong prime `p` of exactly `length` bits together with a prime `pp`
        of `length // 2` bits dividing `p - 1`.

        Candidates are pp*a + 1, pp*(a+1) + 1, ... for a random multiplier
        `a`. When the first probable prime found overshoots `length`, the
        whole attempt is discarded and started over with fresh randomness.
        """
        if length < 4:
            raise ConfigurationError(f"strong prime bit length must be at least 4, got {length}")
        half = length // 2
        for attempt in range(1, self.max_retries + 1):
            self._checkpoint()
            pp = self.random_prime(half)
            a = self.uniform_bits(length - half + 1)
            p = self._search(pp * a + 1, pp, length)
            if p is not None:
                logger.debug(
                    "[StrongPrime] %d-bit strong prime found after %d attempt(s)",
                    length, attempt,
                )
                return p, pp
            logger.debug("[StrongPrime] No %d-bit candidate, resampling", length)
        raise GenerationError(
            f"no {length}-bit strong prime after {self.max_retries} attempts"
        )

    def _search(self, start: int, step: int, length: int) -> Optional[int]:
        # First probable prime in start, start + step, ... if it has `length` bits
        candidate = start
        for _ in range(self.max_retries):
            if candidate.bit_length() > length:
                return None
            if self.is_probable_prime(candidate):
                return candidate
            candidate += step
            self._checkpoint()
        return None

    def strong_prime(self, length: int) -> int:
        """Prime `p` of exactly `length` bits where `p - 1` has a large prime factor."""
        p, _ = self.strong_prime_with_factor(length)
        return p
