"""Encryption engines: the shared block pipeline and its RSA and Caesar variants.

An engine only has to say how a single integer is transformed with a key. Padding, the pad-then-transform encoding
and the block-wise encryption of a whole `Message` are shared by every engine.

Typical usage example:

    rsa = RSAEngine()
    key = rsa.generate(64, workers=4)
    msg = Message.from_text("Hi there!")
    rsa.encrypt(msg, key.pub)
    rsa.decrypt(msg, key.priv)
    msg.to_text()
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import abc
import logging
import secrets
from typing import Generic, TypeVar
import warnings

from sdpe import keygen
from sdpe.keygen import GEN_WORKERS_DEF
from sdpe.keygen import PRIME_SIZE_DEF
from sdpe.keys import Key
from sdpe.keys import NumKey
from sdpe.keys import RSAMainKey
from sdpe.keys import RSAPrivKey
from sdpe.keys import RSAPubKey
from sdpe.messages import Message

CESAR_SIZE_DEF: int = 2

EncKey = TypeVar("EncKey", bound=Key)
DecKey = TypeVar("DecKey", bound=Key)
MainKey = TypeVar("MainKey", bound=Key)

logger = logging.getLogger(__name__)


class Engine(abc.ABC, Generic[EncKey, DecKey, MainKey]):
    """Block cipher pipeline built on two per-engine integer transforms.

    Attributes:
        name: Registry name of the engine.
        main_key: Class of the key `generate` returns, used to parse stored main keys.
    """
    name: str = ""
    main_key: type[Key] = NumKey

    @abc.abstractmethod
    def generate(self, *args, **kwargs) -> MainKey:
        """Generate a fresh main key."""

    @abc.abstractmethod
    def transform_encrypt(self, value: int, key: EncKey) -> int:
        """Encrypt a single padded block."""

    @abc.abstractmethod
    def transform_decrypt(self, value: int, key: DecKey) -> int:
        """Decrypt a single block, leaving the pad in place."""

    def gen_def(self) -> MainKey:
        """Generate a main key with the engine defaults."""
        return self.generate()

    def pad(self, value: int, padsize: int) -> int:
        """Append `padsize` random bytes below the value.

        The nonce makes equal blocks encrypt to different values.

        Args:
            value: The block to pad.
            padsize: Number of random bytes to append.

        Returns:
            The padded block.
        """
        bits = 8 * padsize
        return (value << bits) + secrets.randbits(bits)

    def unpad(self, value: int, padsize: int) -> int:
        """Drop the `padsize` low bytes appended by `pad`. Must be called with the padding size used to pad."""
        return value >> 8 * padsize

    def encode(self, value: int, key: EncKey, padsize: int) -> int:
        return self.transform_encrypt(self.pad(value, padsize), key)

    def decode(self, value: int, key: DecKey, padsize: int) -> int:
        return self.unpad(self.transform_decrypt(value, key), padsize)

    def encrypt(self, message: Message, key: EncKey) -> None:
        """Encrypt every block of the message in place.

        Args:
            message: The message to encrypt. Its `padsize` is used for every block.
            key: The encryption key.

        Raises:
            ValueError: If a block cannot be transformed with the key. The message is left untouched.
        """
        message.parts = [self.encode(part, key, message.padsize) for part in message.parts]
        message.encrypted = True
        message.refresh_nval()
        logger.debug("%s encrypted %d blocks.", self.name, len(message.parts))

    def decrypt(self, message: Message, key: DecKey) -> None:
        """Decrypt every block of the message in place.

        Args:
            message: The message to decrypt. Its `padsize` must match the one used for encryption.
            key: The decryption key.

        Raises:
            ValueError: If a block cannot be transformed with the key. The message is left untouched.
        """
        message.parts = [self.decode(part, key, message.padsize) for part in message.parts]
        message.encrypted = False
        message.refresh_nval()
        logger.debug("%s decrypted %d blocks.", self.name, len(message.parts))


class CesarEngine(Engine[NumKey, NumKey, NumKey]):
    """Additive cipher: blocks are shifted by the key value. Insecure, kept for teaching purposes."""
    name = "cesar"
    main_key = NumKey

    def generate(self, size: int = CESAR_SIZE_DEF) -> NumKey:  # pylint: disable=arguments-differ
        """Draw a random key of `size` bytes."""
        if size < 1:
            raise ValueError("Size must be >= 1")
        return NumKey(secrets.randbits(8 * size))

    def transform_encrypt(self, value: int, key: NumKey) -> int:
        return value + key.value

    def transform_decrypt(self, value: int, key: NumKey) -> int:
        res = value - key.value
        if res < 0:
            raise ValueError("Block is smaller than the key, wrong key or not a Caesar ciphertext.")
        return res

    def encrypt(self, message: Message, key: NumKey) -> None:
        warnings.warn("Caesar encryption is unsecure! Please use with care.", RuntimeWarning)
        super().encrypt(message, key)


class RSAEngine(Engine[RSAPubKey | RSAPrivKey, RSAPubKey | RSAPrivKey, RSAMainKey]):
    """Textbook RSA on padded blocks.

    Both transforms raise each block to the key exponent, so encrypting with the public key and decrypting with the
    private one works just as signing with the private key and verifying with the public one.
    """
    name = "rsa"
    main_key = RSAMainKey

    def generate(self,
                 size: int = PRIME_SIZE_DEF,
                 workers: int = GEN_WORKERS_DEF,
                 checkers: int = 1) -> RSAMainKey:  # pylint: disable=arguments-differ
        """Generate a main RSA key.

        Args:
            size: The size of each prime in bytes. The modulus is twice as long.
            workers: Number of candidate generator threads.
            checkers: Number of primality checker threads.

        Returns:
            The (public, private) key pair.
        """
        (n, e), (_, d) = keygen.generate_key_pair(size, workers, checkers)
        return RSAMainKey(RSAPubKey.from_numbers(n, e), RSAPrivKey.from_numbers(n, d))

    def transform_encrypt(self, value: int, key: RSAPubKey | RSAPrivKey) -> int:
        return key.c_rsa(value)

    def transform_decrypt(self, value: int, key: RSAPubKey | RSAPrivKey) -> int:
        return key.c_rsa(value)


ENGINES: dict[str, type[Engine]] = {
    RSAEngine.name: RSAEngine,
    CesarEngine.name: CesarEngine,
}


def get_engine(name: str) -> Engine:
    """Instantiate the engine registered under `name`.

    Raises:
        KeyError: If no engine has that name.
    """
    try:
        return ENGINES[name.lower()]()
    except KeyError:
        raise KeyError(f"Unknown engine {name!r}, expected one of {', '.join(ENGINES)}.") from None
