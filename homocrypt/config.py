import os
from dataclasses import dataclass, replace
from typing import Optional

from homocrypt.errors import ConfigurationError

ENV_PREFIX = "HOMOCRYPT_"

# Smallest key size for which two distinct half-size strong primes exist.
MIN_KEY_SIZE = 18


@dataclass(frozen=True)
class Settings:
    """Tunables shared by key generation and both cryptosystems."""
    key_size: int = 1024          # Modulus size in bits (must be even)
    primality_rounds: int = 40    # Miller-Rabin rounds, error <= 4^-rounds
    max_retries: int = 10_000     # Ceiling for every resampling loop
    timeout: Optional[float] = None  # Seconds allowed for prime generation
    fast_l: bool = False          # Paillier L via n^-1 mod 2^k instead of division

    def __post_init__(self) -> None:
        validate_key_size(self.key_size)
        if self.primality_rounds < 1:
            raise ConfigurationError("primality_rounds must be at least 1")
        if self.max_retries < 1:
            raise ConfigurationError("max_retries must be at least 1")
        if self.timeout is not None and self.timeout <= 0:
            raise ConfigurationError("timeout must be positive")

    def with_key_size(self, key_size: int) -> "Settings":
        return replace(self, key_size=key_size)

    @classmethod
    def from_env(cls, key_size: Optional[int] = None) -> "Settings":
        """
        Build settings from HOMOCRYPT_* environment variables.
        Unset variables fall back to the dataclass defaults. An explicit
        key_size wins and HOMOCRYPT_KEY_SIZE is then not read at all.
        """
        defaults = cls()
        timeout = os.getenv(ENV_PREFIX + "TIMEOUT")
        if key_size is None:
            key_size = _env_int("KEY_SIZE", defaults.key_size)
        return cls(
            key_size=key_size,
            primality_rounds=_env_int("PRIMALITY_ROUNDS", defaults.primality_rounds),
            max_retries=_env_int("MAX_RETRIES", defaults.max_retries),
            timeout=_parse_float("TIMEOUT", timeout) if timeout else None,
            fast_l=_env_bool("FAST_L", defaults.fast_l),
        )


def validate_key_size(key_size: int) -> None:
    if key_size % 2 != 0:
        raise ConfigurationError(f"key size must be even, got {key_size}")
    if key_size < MIN_KEY_SIZE:
        raise ConfigurationError(
            f"key size must be at least {MIN_KEY_SIZE} bits, got {key_size}"
        )


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be an integer: {raw!r}") from e


def _parse_float(name: str, raw: str) -> float:
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigurationError(f"{ENV_PREFIX}{name} must be a number: {raw!r}") from e


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(ENV_PREFIX + name)
    if raw is None or raw == "":
        return default
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ConfigurationError(f"{ENV_PREFIX}{name} must be a boolean: {raw!r}")
