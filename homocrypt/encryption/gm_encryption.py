import logging
import time
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional

import sympy

from homocrypt.config import Settings
from homocrypt.errors import ConfigurationError, GenerationError, InvariantError
from homocrypt.primes import PrimeGenerator
from homocrypt.random_state import RandomState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GMPublicKey:
    n: int
    x: int  # non-residue modulo both factors of n


@dataclass(frozen=True)
class GMPrivateKey:
    p: int
    q: int


class GoldwasserMicali:
    """
    Goldwasser-Micali bit encryption.

    A 0 bit encrypts to a random quadratic residue modulo n, a 1 bit to a
    random non-residue. Only the holder of the factors of n can tell the
    two apart. Multiplying ciphertexts XORs the bits.
    """

    def __init__(
        self,
        key_size: Optional[int] = None,
        settings: Optional[Settings] = None,
        random_state: Optional[RandomState] = None,
        cancel: Optional[Callable[[], bool]] = None,
    ):
        self._init_state(settings, random_state, key_size)
        self.key_size = self.settings.key_size
        self._generate_keys(cancel)

    @classmethod
    def from_keys(
        cls,
        public_key: GMPublicKey,
        private_key: GMPrivateKey,
        settings: Optional[Settings] = None,
        random_state: Optional[RandomState] = None,
    ) -> "GoldwasserMicali":
        """Wrap an existing key pair; no key generation takes place."""
        if public_key.n != private_key.p * private_key.q:
            raise ConfigurationError("public modulus does not match the private factors")
        x = public_key.x
        if _legendre(x, private_key.p) != -1 or _legendre(x, private_key.q) != -1:
            raise ConfigurationError("x is not a non-residue modulo both factors")
        scheme = cls.__new__(cls)
        scheme._init_state(settings, random_state)
        scheme.key_size = public_key.n.bit_length()
        scheme.public_key = public_key
        scheme.private_key = private_key
        return scheme

    def _init_state(
        self,
        settings: Optional[Settings],
        random_state: Optional[RandomState],
        key_size: Optional[int] = None,
    ) -> None:
        if settings is None:
            settings = Settings.from_env(key_size=key_size)
        elif key_size is not None:
            settings = settings.with_key_size(key_size)
        self.settings = settings
        self.random_state = random_state if random_state is not None else RandomState()

    def _generate_keys(self, cancel: Optional[Callable[[], bool]]) -> None:
        logger.info("[KeyGen] Generating %d-bit Goldwasser-Micali key pair", self.key_size)
        started = time.monotonic()
        primes = PrimeGenerator(
            self.random_state,
            rounds=self.settings.primality_rounds,
            max_retries=self.settings.max_retries,
            timeout=self.settings.timeout,
            cancel=cancel,
        )
        half = self.key_size // 2
        p = primes.strong_prime(half + 1)
        q = primes.strong_prime(half)
        retries = 0
        while p == q:
            retries += 1
            if retries > self.settings.max_retries:
                raise GenerationError("could not find two distinct primes")
            q = primes.strong_prime(half)

        n = p * q
        if n.bit_length() < self.key_size:
            raise InvariantError(
                f"modulus has {n.bit_length()} bits, expected at least {self.key_size}"
            )

        # x must be a non-residue modulo both p and q
        for attempt in range(1, self.settings.max_retries + 1):
            x = self.random_state.uniform_below(n)
            if _legendre(x, p) == -1 and _legendre(x, q) == -1:
                break
        else:
            raise GenerationError("no common quadratic non-residue found")
        logger.debug("[KeyGen] Non-residue found after %d sample(s)", attempt)

        self.public_key = GMPublicKey(n=n, x=x)
        self.private_key = GMPrivateKey(p=p, q=q)
        logger.info("[KeyGen] Goldwasser-Micali key pair ready in %.2fs", time.monotonic() - started)

    def encrypt(self, bit: bool) -> int:
        if bit not in (0, 1):
            raise ValueError(f"Goldwasser-Micali encrypts single bits, got {bit!r}")
        n = self.public_key.n
        y = self.random_state.uniform_unit(n, self.settings.max_retries)
        c = (y * y) % n
        if bit:
            c = (c * self.public_key.x) % n
        return c

    def decrypt(self, ciphertext: int) -> bool:
        if not (0 <= ciphertext < self.public_key.n):
            raise ValueError("Invalid ciphertext")
        # Both symbols agree for well-formed ciphertexts
        return not (
            _legendre(ciphertext, self.private_key.p) == 1
            and _legendre(ciphertext, self.private_key.q) == 1
        )

    def xor(self, c1: int, c2: int) -> int:
        """Ciphertext of the XOR of both bits."""
        return (c1 * c2) % self.public_key.n

    def encrypt_bits(self, bits: Iterable[bool]) -> List[int]:
        return [self.encrypt(bit) for bit in bits]

    def decrypt_bits(self, ciphertexts: Iterable[int]) -> List[bool]:
        return [self.decrypt(c) for c in ciphertexts]


def _legendre(a: int, p: int) -> int:
    # Jacobi symbol equals the Legendre symbol for an odd prime p
    return sympy.jacobi_symbol(a, p)


def demo(key_size: int = 1024):
    print("Initializing Goldwasser-Micali cryptosystem...")
    gm = GoldwasserMicali(key_size=key_size)
    print(f"Modulus n has {gm.public_key.n.bit_length()} bits")

    bits = [True, False, True, True]
    ciphertexts = gm.encrypt_bits(bits)
    print(f"\nOriginal bits: {bits}")
    print(f"Decrypted bits: {gm.decrypt_bits(ciphertexts)}")

    # Same bit, different ciphertexts
    print(f"\nTwo encryptions of True differ: {gm.encrypt(True) != gm.encrypt(True)}")

    for b1 in (False, True):
        for b2 in (False, True):
            c = gm.xor(gm.encrypt(b1), gm.encrypt(b2))
            print(f"Homomorphic XOR: {b1} ^ {b2} = {gm.decrypt(c)}")


if __name__ == "__main__":
    demo()
