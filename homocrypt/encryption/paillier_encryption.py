import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

from homocrypt.config import Settings
from homocrypt.errors import ConfigurationError, GenerationError, InvariantError
from homocrypt.primes import PrimeGenerator
from homocrypt.random_state import RandomState

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaillierPublicKey:
    n: int
    n2: int
    g: int


@dataclass(frozen=True)
class PaillierPrivateKey:
    lam: int
    mu: int


class Paillier:
    """
    Paillier cryptosystem with the simplified generator g = n + 1.

    Plaintexts live in Z_n and ciphertexts in Z_{n^2}. Multiplying
    ciphertexts adds the underlying plaintexts, raising a ciphertext to a
    public constant multiplies its plaintext.
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
        public_key: PaillierPublicKey,
        private_key: PaillierPrivateKey,
        settings: Optional[Settings] = None,
        random_state: Optional[RandomState] = None,
    ) -> "Paillier":
        """Wrap an existing key pair; no key generation takes place."""
        if public_key.g != public_key.n + 1 or public_key.n2 != public_key.n * public_key.n:
            raise ConfigurationError("public key must satisfy g = n + 1 and n2 = n^2")
        if (private_key.lam * private_key.mu) % public_key.n != 1:
            raise ConfigurationError("private key does not match the public modulus")
        scheme = cls.__new__(cls)
        scheme._init_state(settings, random_state)
        scheme.key_size = public_key.n.bit_length()
        scheme._install_keys(public_key, private_key)
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

    def _install_keys(self, public_key: PaillierPublicKey, private_key: PaillierPrivateKey) -> None:
        self.public_key = public_key
        self.private_key = private_key
        # n^-1 mod 2^k lets L(u) be computed with a multiplication and a mask
        k = public_key.n.bit_length()
        self._l_mask = (1 << k) - 1
        self._n_inv = pow(public_key.n, -1, 1 << k)

    def _generate_keys(self, cancel: Optional[Callable[[], bool]]) -> None:
        logger.info("[KeyGen] Generating %d-bit Paillier key pair", self.key_size)
        started = time.monotonic()
        primes = PrimeGenerator(
            self.random_state,
            rounds=self.settings.primality_rounds,
            max_retries=self.settings.max_retries,
            timeout=self.settings.timeout,
            cancel=cancel,
        )
        half = self.key_size // 2
        for _ in range(self.settings.max_retries):
            p = primes.strong_prime(half)
            q = primes.strong_prime(half)
            if p != q and (p * q).bit_length() >= self.key_size:
                break
            logger.debug("[KeyGen] Rejected prime pair, resampling")
        else:
            raise GenerationError("could not find a prime pair for the modulus")

        n = p * q
        lam = (p - 1) * (q - 1)
        try:
            mu = pow(lam, -1, n)
        except ValueError as e:
            raise InvariantError("lambda is not invertible modulo n") from e

        self._install_keys(
            PaillierPublicKey(n=n, n2=n * n, g=n + 1),
            PaillierPrivateKey(lam=lam, mu=mu),
        )
        logger.info("[KeyGen] Paillier key pair ready in %.2fs", time.monotonic() - started)

    def _L(self, u: int) -> int:
        n = self.public_key.n
        if self.settings.fast_l:
            return ((u - 1) * self._n_inv) & self._l_mask
        quotient, remainder = divmod(u - 1, n)
        if remainder:
            raise InvariantError("L(u) is undefined: u is not 1 modulo n")
        return quotient

    def _random_factor(self) -> int:
        # r^n mod n^2 for a fresh unit r
        r = self.random_state.uniform_unit(self.public_key.n, self.settings.max_retries)
        return pow(r, self.public_key.n, self.public_key.n2)

    def encrypt(self, m: int) -> int:
        """Encrypt m; values outside [0, n) wrap modulo n."""
        n, n2 = self.public_key.n, self.public_key.n2
        rn = self._random_factor()
        # g^m = (1 + n)^m = 1 + m*n (mod n^2)
        gm = (1 + (m % n) * n) % n2
        return (gm * rn) % n2

    def decrypt(self, ciphertext: int) -> int:
        n2 = self.public_key.n2
        if not (0 < ciphertext < n2):
            raise ValueError("Invalid ciphertext")
        u = pow(ciphertext, self.private_key.lam, n2)
        return (self._L(u) * self.private_key.mu) % self.public_key.n

    def add_cipher(self, c1: int, c2: int) -> int:
        """Ciphertext of the sum of both plaintexts."""
        return (c1 * c2) % self.public_key.n2

    def add_const(self, c: int, m: int) -> int:
        """Ciphertext of plaintext + m. The g^m term is not re-randomized."""
        return self.add_cipher(c, pow(self.public_key.g, m, self.public_key.n2))

    def mul_const(self, c: int, k: int) -> int:
        """Ciphertext of plaintext * k."""
        return pow(c, k, self.public_key.n2)

    def rerandomize(self, c: int) -> int:
        """Fresh-looking ciphertext of the same plaintext."""
        return self.add_cipher(c, self._random_factor())


def demo(key_size: int = 1024):
    print("Initializing Paillier cryptosystem...")
    paillier = Paillier(key_size=key_size)
    print(f"Modulus n has {paillier.public_key.n.bit_length()} bits")

    m1, m2 = 1235, 5321
    c1 = paillier.encrypt(m1)
    c2 = paillier.encrypt(m2)
    print(f"\nEncrypted {m1}: {c1}")
    print(f"\nDecrypted: {paillier.decrypt(c1)}")

    # Addition
    c_sum = paillier.add_cipher(c1, c2)
    print(f"\nHomomorphic addition: {m1} + {m2} = {paillier.decrypt(c_sum)}")

    c_const = paillier.add_const(c1, m2)
    print(f"Constant addition: {m1} + {m2} = {paillier.decrypt(c_const)}")

    # Multiplication by constant
    c_mult = paillier.mul_const(c1, m2)
    print(f"Constant multiplication: {m1} * {m2} = {paillier.decrypt(c_mult)}")


if __name__ == "__main__":
    demo()
