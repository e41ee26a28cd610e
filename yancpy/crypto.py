"""RSA key generation at the interface level.

Primes are found by rejection sampling with Miller-Rabin testing. Random
numbers come from a seedable :class:`numpy.random.Generator`, which makes key
generation reproducible for tests; the keys are not meant for production use
and no side-channel hardening is attempted.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass

import numpy as np

from yancpy.errors import DomainError, KeyGenerationError
from yancpy.log import numerics_logger
from yancpy.numerics import Numerics, resolve

log = numerics_logger(__name__)

MIN_BIT_LENGTH = 16

_SMALL_PRIMES = (3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47, 53, 59, 61, 67, 71, 73, 79, 83, 89, 97)


@dataclass(frozen=True)
class RSAPublicKey:
    n: int
    e: int


@dataclass(frozen=True)
class RSAPrivateKey:
    n: int
    d: int


@dataclass(frozen=True)
class RSAKeyPair:
    public: RSAPublicKey
    private: RSAPrivateKey

    def as_dict(self) -> dict:
        """``{"public": {"n", "e"}, "private": {"n", "d"}}``."""
        return asdict(self)


def _random_bits(rng: np.random.Generator, bits: int) -> int:
    nbytes = (bits + 7) // 8
    return int.from_bytes(rng.bytes(nbytes), "big") >> (nbytes * 8 - bits)


def _random_below(rng: np.random.Generator, upper: int) -> int:
    # Extra bytes keep the modulo bias negligible.
    nbytes = (upper.bit_length() + 7) // 8 + 8
    return int.from_bytes(rng.bytes(nbytes), "big") % upper


def is_probable_prime(n: int, rounds: int, rng: np.random.Generator) -> bool:
    """Miller-Rabin test with ``rounds`` random bases."""
    if n < 2:
        return False
    if n in (2, 3):
        return True
    if n % 2 == 0:
        return False
    for p in _SMALL_PRIMES:
        if n == p:
            return True
        if n % p == 0:
            return False

    d = n - 1
    s = 0
    while d % 2 == 0:
        d //= 2
        s += 1

    for _ in range(rounds):
        a = 2 + _random_below(rng, n - 3)
        x = pow(a, d, n)
        if x in (1, n - 1):
            continue
        for _ in range(s - 1):
            x = pow(x, 2, n)
            if x == n - 1:
                break
        else:
            return False
    return True


def _random_prime(bits: int, e: int, rng: np.random.Generator, rounds: int, budget: int) -> int:
    for attempt in range(1, budget + 1):
        # Top two bits set so the product of two such primes has full length.
        candidate = _random_bits(rng, bits) | (0b11 << (bits - 2)) | 1
        if math.gcd(e, candidate - 1) != 1:
            continue
        if is_probable_prime(candidate, rounds, rng):
            log.numerics("found %d-bit prime after %d candidates", bits, attempt)
            return candidate
    raise KeyGenerationError(
        f"no {bits}-bit prime found within {budget} candidates"
    )


def generate_rsa_keys(
    bit_length: int = 2048,
    *,
    seed: int | None = None,
    public_exponent: int | None = None,
    numerics: Numerics | None = None,
) -> RSAKeyPair:
    """Generate an RSA key pair whose modulus has exactly ``bit_length`` bits.

    Raises
    ------
    KeyGenerationError
        If ``bit_length`` is below 16 or the prime search exhausts
        ``numerics.crypto.max_prime_attempts`` candidates.
    """
    cfg = resolve(numerics).crypto
    e = public_exponent if public_exponent is not None else cfg.public_exponent
    if bit_length < MIN_BIT_LENGTH:
        raise KeyGenerationError(
            f"bit length must be at least {MIN_BIT_LENGTH}, got {bit_length}"
        )
    if e < 3 or e % 2 == 0:
        raise KeyGenerationError(f"public exponent must be odd and at least 3, got {e}")

    rng = np.random.default_rng(seed)
    p_bits = bit_length // 2
    q_bits = bit_length - p_bits

    p = _random_prime(p_bits, e, rng, cfg.miller_rabin_rounds, cfg.max_prime_attempts)
    for _ in range(cfg.max_prime_attempts):
        q = _random_prime(q_bits, e, rng, cfg.miller_rabin_rounds, cfg.max_prime_attempts)
        if q != p:
            break
    else:
        raise KeyGenerationError(f"could not find two distinct {q_bits}-bit primes")

    n = p * q
    carmichael = (p - 1) * (q - 1) // math.gcd(p - 1, q - 1)
    d = pow(e, -1, carmichael)
    log.debug("generated %d-bit RSA modulus", n.bit_length())
    return RSAKeyPair(public=RSAPublicKey(n=n, e=e), private=RSAPrivateKey(n=n, d=d))


def rsa_encrypt(message: int, key: RSAPublicKey) -> int:
    """Textbook RSA: ``message ** e mod n``."""
    if not 0 <= message < key.n:
        raise DomainError(f"message must satisfy 0 <= m < n, got m = {message}")
    return pow(message, key.e, key.n)


def rsa_decrypt(ciphertext: int, key: RSAPrivateKey) -> int:
    if not 0 <= ciphertext < key.n:
        raise DomainError(f"ciphertext must satisfy 0 <= c < n, got c = {ciphertext}")
    return pow(ciphertext, key.d, key.n)
