"""Integer arithmetic shared by the engines, the key model and the message model.

Covers modular exponentiation, the Extended Euclidean Algorithm, a fixed witness Fermat test, public exponent
selection, generation of prime-like candidates, and the conversions between an integer, its fixed width byte blocks
and its radix-36 text.

Typical usage example:

    parts = decompose(0xDEADBEEF, 2)
    value = recompose(parts, 2)
    e = find_exponent((p - 1) * (q - 1))
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import secrets

from sdpe.errors import ConstructionError
from sdpe.errors import ExponentSelectionError
from sdpe.errors import KeyParseError

EXPONENT_TABLE: tuple[int, ...] = (2, 3, 5, 7, 11, 13, 17, 19, 23, 29, 31, 37, 41, 43, 47, 53, 59, 61, 67, 71, 73, 79,
                                   83, 89, 97, 101, 103, 107, 109, 113, 127, 131, 137, 139, 149)
PRIME_WITNESS: int = 12737213
RADIX: int = 36

_DIGITS = "0123456789abcdefghijklmnopqrstuvwxyz"
_TRAILING_DIGITS = (1, 3, 7, 9)


def modpow(base: int, exp: int, mod: int) -> int:
    """Square-and-multiply modular exponentiation.

    Args:
        base: The base. Must be non-negative.
        exp: The exponent. Must be non-negative.
        mod: The modulus. Must be positive.

    Returns:
        `base**exp % mod`.

    Raises:
        ValueError: If the exponent is negative or the modulus is not positive.
    """
    if exp < 0:
        raise ValueError("Exponent must be >= 0")
    if mod < 1:
        raise ValueError("Modulus must be >= 1")
    res = 1 % mod
    base %= mod
    while exp:
        if exp & 1:
            res = (res * base) % mod
        exp >>= 1
        base = (base * base) % mod
    return res


def eea(a: int, b: int) -> tuple[int, int, int]:
    """Implements the Extended Euclidean Algorithm.

    Such a that a*s0 + b*t0 = r0 = gcd(a, b).

    Args:
        a: The first natural number.
        b: The second natural number.

    Returns:
        Greatest common denominator of two integers.
        As well as the Bezout coefficients.
    """
    r0, r1 = a, b
    s0, s1, t0, t1 = 1, 0, 0, 1
    while r1 != 0:
        q = r0 // r1
        r0, r1 = r1, r0 - q * r1
        s0, s1 = s1, s0 - q * s1
        t0, t1 = t1, t0 - q * t1
    return r0, s0, t0


def euclid(a: int, b: int) -> int:
    """Bezout coefficient of `a` in `a*u + b*v = gcd(a, b)`.

    When `gcd(a, b) == 1` this is an inverse of `a` modulo `b`, possibly negative.
    """
    return eea(a, b)[1]


def fermat_test(candidate: int, witness: int = PRIME_WITNESS) -> bool:
    """Fermat primality test against a single fixed witness.

    The witness is reduced modulo the candidate, so the test is deterministic for a given candidate: it is evaluated
    once. Fermat pseudoprimes to the witness and Carmichael numbers pass, see `keygen.check_prime` for the stronger
    test used by default.

    Args:
        candidate: The number to test.
        witness: The witness base. Defaults to `PRIME_WITNESS`.

    Returns:
        True if `witness**(candidate - 1) % candidate == 1`, False otherwise.
    """
    if candidate < 2:
        return False
    return modpow(witness % candidate, candidate - 1, candidate) == 1


def find_exponent(totient: int) -> int:
    """Pick the public exponent for a totient.

    Scans `EXPONENT_TABLE` in ascending order. As every entry is prime, not dividing the totient means being coprime
    with it, hence invertible modulo the totient.

    Args:
        totient: The totient of the modulus.

    Returns:
        The first table prime which does not divide `totient`.

    Raises:
        ExponentSelectionError: If every table prime divides `totient`.
    """
    for prime in EXPONENT_TABLE:
        if totient % prime != 0:
            return prime
    raise ExponentSelectionError(f"No prime up to {EXPONENT_TABLE[-1]} is coprime with the totient.")


def rand_primelike(size: int) -> int:
    """Draw a random candidate of `size` bytes which is divisible by neither 2 nor 5.

    The two upper bits are set so that the product of two candidates keeps the full `2 * size` byte length, then the
    last decimal digit is replaced by one of 1, 3, 7 or 9.

    Args:
        size: The size of the candidate in bytes. Must be >= 1.

    Returns:
        The candidate.
    """
    if size < 1:
        raise ValueError("Size must be >= 1")
    bits = size * 8
    cand = secrets.randbits(bits) | (1 << bits - 1) | (1 << bits - 2)
    return cand // 10 * 10 + secrets.choice(_TRAILING_DIGITS)


def byte_size(value: int) -> int:
    """Number of bytes needed to hold a non-negative value, at least one."""
    return max(1, (value.bit_length() + 7) // 8)


def decompose(value: int, width: int) -> list[int]:
    """Split a non-negative integer into big-endian limbs of `width` bytes.

    Only the most significant limb may be narrower than `width`. Zero decomposes into a single zero limb.

    Args:
        value: The integer to split.
        width: The limb width in bytes. Must be >= 1.

    Returns:
        The limbs, most significant first.
    """
    if width < 1:
        raise ValueError("Block width must be >= 1")
    if value < 0:
        raise ValueError("Only non-negative values can be decomposed")
    shift = 8 * width
    mask = (1 << shift) - 1
    parts = []
    while True:
        parts.append(value & mask)
        value >>= shift
        if not value:
            break
    parts.reverse()
    return parts


def recompose(parts: list[int], width: int) -> int:
    """Join big-endian limbs of `width` bytes back into an integer.

    Args:
        parts: The limbs, most significant first.
        width: The limb width in bytes. Every limb after the first is taken to be exactly this wide.

    Returns:
        The joined integer.

    Raises:
        ConstructionError: If `parts` is empty.
    """
    if not parts:
        raise ConstructionError("Cannot recompose an empty block sequence.")
    base = 1 << 8 * width
    res = 0
    for part in parts:
        res = res * base + part
    return res


def to_radix(value: int, radix: int = RADIX) -> str:
    """Render a non-negative integer in `radix` with lower-case digits."""
    if not 2 <= radix <= len(_DIGITS):
        raise ValueError(f"Radix must be in range [2, {len(_DIGITS)}]")
    if value < 0:
        raise ValueError("Only non-negative values can be rendered")
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, radix)
        digits.append(_DIGITS[rem])
    return "".join(reversed(digits))


def from_radix(text: str, radix: int = RADIX) -> int:
    """Parse a non-negative integer written in `radix`.

    Stricter than `int(text, radix)`: signs, underscores, whitespace and prefixes are refused.

    Args:
        text: The digits. Case insensitive.
        radix: The radix. Defaults to 36.

    Returns:
        The parsed integer.

    Raises:
        KeyParseError: If `text` is empty or holds a character that is not a digit of `radix`.
    """
    if not 2 <= radix <= len(_DIGITS):
        raise ValueError(f"Radix must be in range [2, {len(_DIGITS)}]")
    allowed = _DIGITS[:radix]
    if not text or any(ch not in allowed for ch in text.lower()):
        raise KeyParseError(f"{text!r} is not a valid radix-{radix} number.")
    return int(text, radix)
