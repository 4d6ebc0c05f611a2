import math

import pytest
import sympy

from homocrypt.config import MIN_KEY_SIZE, Settings
from homocrypt.encryption.paillier_encryption import (
    Paillier,
    PaillierPrivateKey,
    PaillierPublicKey,
    demo,
)
from homocrypt.errors import ConfigurationError, GenerationError, InvariantError
from homocrypt.random_state import RandomState

from tests.conftest import TEST_KEY_SIZE, FixedBitsState


def test_key_generation_invariants(paillier):
    pk, sk = paillier.public_key, paillier.private_key
    assert pk.g == pk.n + 1
    assert pk.n2 == pk.n * pk.n
    assert pk.n.bit_length() >= TEST_KEY_SIZE
    assert math.gcd(sk.lam, pk.n) == 1
    assert (sk.lam * sk.mu) % pk.n == 1


def test_lambda_matches_factors(paillier):
    n, lam = paillier.public_key.n, paillier.private_key.lam
    # lam = (p-1)(q-1) = n - (p+q) + 1, so p+q is recoverable and the factors follow
    s = n - lam + 1
    p = (s + math.isqrt(s * s - 4 * n)) // 2
    q = n // p
    assert p * q == n
    assert p != q
    assert sympy.isprime(p) and sympy.isprime(q)


@pytest.mark.parametrize("m", [0, 1, 1235, 2**64 + 7])
def test_encrypt_decrypt_roundtrip(paillier, m):
    assert paillier.decrypt(paillier.encrypt(m)) == m


def test_largest_plaintext(paillier):
    m = paillier.public_key.n - 1
    assert paillier.decrypt(paillier.encrypt(m)) == m


def test_plaintext_wraps_modulo_n(paillier):
    n = paillier.public_key.n
    assert paillier.decrypt(paillier.encrypt(n + 5)) == 5
    assert paillier.decrypt(paillier.encrypt(-1)) == n - 1


def test_encryption_is_probabilistic(paillier):
    assert paillier.encrypt(1235) != paillier.encrypt(1235)


def test_add_cipher(paillier):
    c = paillier.add_cipher(paillier.encrypt(1235), paillier.encrypt(5321))
    assert paillier.decrypt(c) == 6556


def test_add_cipher_wraps(paillier):
    n = paillier.public_key.n
    c = paillier.add_cipher(paillier.encrypt(n - 1), paillier.encrypt(2))
    assert paillier.decrypt(c) == 1


def test_add_const(paillier):
    assert paillier.decrypt(paillier.add_const(paillier.encrypt(1235), 5321)) == 6556


def test_add_const_is_deterministic(paillier):
    c = paillier.encrypt(1235)
    assert paillier.add_const(c, 5321) == paillier.add_const(c, 5321)


def test_mul_const(paillier):
    assert paillier.decrypt(paillier.mul_const(paillier.encrypt(1235), 5321)) == 6571435


def test_mul_const_by_zero(paillier):
    assert paillier.decrypt(paillier.mul_const(paillier.encrypt(1235), 0)) == 0


def test_rerandomize(paillier):
    c = paillier.encrypt(42)
    fresh = paillier.rerandomize(c)
    assert fresh != c
    assert paillier.decrypt(fresh) == 42


def test_decrypt_rejects_out_of_range(paillier):
    for c in (0, -3, paillier.public_key.n2):
        with pytest.raises(ValueError, match="Invalid ciphertext"):
            paillier.decrypt(c)


def test_decrypt_detects_malformed_ciphertext(paillier):
    # n shares both factors with n^2, so c^lam is not 1 modulo n
    with pytest.raises(InvariantError):
        paillier.decrypt(paillier.public_key.n)


def test_fast_l_matches_exact_division(paillier):
    fast = Paillier.from_keys(
        paillier.public_key,
        paillier.private_key,
        settings=Settings(key_size=TEST_KEY_SIZE, fast_l=True),
    )
    for m in (0, 1235, 6571435, paillier.public_key.n - 1):
        c = paillier.encrypt(m)
        assert fast.decrypt(c) == paillier.decrypt(c) == m


def test_from_keys_rejects_bad_generator(paillier, settings):
    pk = paillier.public_key
    bad = PaillierPublicKey(n=pk.n, n2=pk.n2, g=pk.g + 1)
    with pytest.raises(ConfigurationError):
        Paillier.from_keys(bad, paillier.private_key, settings=settings)


def test_keys_are_immutable(paillier):
    with pytest.raises(AttributeError):
        paillier.private_key.mu = 1
    assert isinstance(paillier.private_key, PaillierPrivateKey)


@pytest.mark.parametrize("key_size", [1025, 2, MIN_KEY_SIZE - 2])
def test_invalid_key_size(key_size):
    with pytest.raises(ConfigurationError):
        Paillier(key_size=key_size)


def test_from_keys_rejects_mismatched_private_key(paillier, settings):
    sk = paillier.private_key
    bad = PaillierPrivateKey(lam=sk.lam, mu=sk.mu + 1)
    with pytest.raises(ConfigurationError):
        Paillier.from_keys(paillier.public_key, bad, settings=settings)


def test_smallest_key_size():
    for seed in range(5):
        paillier = Paillier(
            settings=Settings(key_size=MIN_KEY_SIZE), random_state=RandomState(seed=seed)
        )
        assert paillier.public_key.n.bit_length() >= MIN_KEY_SIZE
        for m in (0, 1, 1235):
            assert paillier.decrypt(paillier.encrypt(m)) == m
        c = paillier.add_cipher(paillier.encrypt(1235), paillier.encrypt(5321))
        assert paillier.decrypt(c) == 6556


def test_prime_pair_search_gives_up():
    # Every strong prime comes out as 11*32 + 1 = 353, so p == q each time
    state = FixedBitsState({3: 3, 5: 0})
    with pytest.raises(GenerationError, match="prime pair"):
        Paillier(settings=Settings(key_size=MIN_KEY_SIZE, max_retries=5), random_state=state)


def test_explicit_key_size_ignores_bad_env(monkeypatch):
    monkeypatch.setenv("HOMOCRYPT_KEY_SIZE", "1025")
    paillier = Paillier(key_size=64)
    assert paillier.public_key.n.bit_length() >= 64


def test_demo(capsys):
    demo(key_size=128)
    out = capsys.readouterr().out
    assert "1235 + 5321 = 6556" in out
    assert "1235 * 5321 = 6571435" in out


@pytest.mark.slow
def test_full_size_properties():
    paillier = Paillier(settings=Settings(key_size=1024))
    assert paillier.public_key.n.bit_length() >= 1024
    c1, c2 = paillier.encrypt(1235), paillier.encrypt(5321)
    assert paillier.decrypt(c1) == 1235
    assert paillier.decrypt(paillier.add_cipher(c1, c2)) == 6556
    assert paillier.decrypt(paillier.add_const(c1, 5321)) == 6556
    assert paillier.decrypt(paillier.mul_const(c1, 5321)) == 6571435
    for m in range(100):
        assert paillier.decrypt(paillier.encrypt(m)) == m
