"""Key model: numeric leaf keys, recursively nested key pairs and the RSA key hierarchy.

Every key serializes to text and parses back from it. A `NumKey` is the radix-36 text of its integer, a `KeyPair`
is the text of both members joined by `::`. Parsing a pair bisects the `::` separated segments, so nested pairs of
any depth parse back as long as each level knows its member types.

Typical usage example:

    pub = RSAPubKey.from_numbers(n, e)
    text = pub.serialize()
    assert RSAPubKey.parse(text) == pub
    pub.export("id_sdpe.pub")
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import abc
import base64
import dataclasses
import pathlib
from typing import ClassVar, Generic, TypeVar

from pyasn1 import error
from pyasn1.codec.der import decoder
from pyasn1.codec.der import encoder
from pyasn1.codec.native import encoder as localize
from pyasn1_modules import rfc8017

from sdpe import maths
from sdpe.errors import KeyParseError

DELIMITER = "::"

PEM_TYPES = {
    "PKCS1_PUB": ("-----BEGIN RSA PUBLIC KEY-----", "-----END RSA PUBLIC KEY-----"),
}

A = TypeVar("A", bound="Key")
B = TypeVar("B", bound="Key")


class Key(abc.ABC):
    """Text (de)serialization contract shared by every key."""

    @abc.abstractmethod
    def serialize(self) -> str:
        """Render the key as text."""

    @classmethod
    @abc.abstractmethod
    def parse(cls, text: str) -> "Key":
        """Rebuild a key from its text.

        Raises:
            KeyParseError: If the text is malformed.
        """

    def __str__(self) -> str:
        return self.serialize()


@dataclasses.dataclass(frozen=True)
class NumKey(Key):
    """A key made of a single non-negative integer.

    Attributes:
        value: The key integer.
    """
    value: int

    def __post_init__(self) -> None:
        if self.value < 0:
            raise ValueError("Key value must be >= 0")

    def serialize(self) -> str:
        return maths.to_radix(self.value)

    @classmethod
    def parse(cls, text: str) -> "NumKey":
        return cls(maths.from_radix(text))


@dataclasses.dataclass(frozen=True)
class KeyPair(Key, Generic[A, B]):
    """An ordered pair of keys, either of which may itself be a pair.

    Subclasses pin the member types through `first_type` and `second_type`, which `parse` uses to rebuild each half.

    Attributes:
        first: The first member.
        second: The second member.
    """
    first: A
    second: B

    first_type: ClassVar[type[Key]] = NumKey
    second_type: ClassVar[type[Key]] = NumKey

    def serialize(self) -> str:
        return self.first.serialize() + DELIMITER + self.second.serialize()

    @classmethod
    def parse(cls, text: str) -> "KeyPair":
        """Rebuild the pair by bisecting the `::` separated segments of `text`.

        Args:
            text: The serialized pair.

        Returns:
            The pair, with both halves parsed by the member types of `cls`.

        Raises:
            KeyParseError: If the segment count is odd or either half is malformed.
        """
        segments = text.split(DELIMITER)
        if len(segments) % 2 != 0:
            raise KeyParseError(f"Key pair text holds an odd number of segments ({len(segments)}).")
        half = len(segments) // 2
        first = cls.first_type.parse(DELIMITER.join(segments[:half]))
        second = cls.second_type.parse(DELIMITER.join(segments[half:]))
        return cls(first, second)


class RSAKey(KeyPair[NumKey, NumKey]):
    """The (modulus, exponent) core shared by public and private RSA keys."""

    @classmethod
    def from_numbers(cls, mod: int, expo: int):
        return cls(NumKey(mod), NumKey(expo))

    @property
    def mod(self) -> int:
        return self.first.value

    @property
    def expo(self) -> int:
        return self.second.value

    @property
    def bsize(self) -> int:
        """Byte length of the modulus."""
        return maths.byte_size(self.mod)

    def c_rsa(self, message: int) -> int:
        """Performs core RSA operation. (Encrypt/Decrypt/Sign/Verify).

        Args:
            message: The int-marshalled message.

        Returns:
            `message**expo % mod`.

        Raises:
            ValueError: If the message is out of range for the current key.
        """
        if not 0 <= message < self.mod:
            raise ValueError("Message representative must be in range [0, mod-1]")
        return maths.modpow(message, self.expo, self.mod)


@dataclasses.dataclass(frozen=True)
class RSAPubKey(RSAKey):
    """RSA public key (n, e). Exportable to PKCS#1 PEM."""

    def export(self, file: pathlib.Path) -> None:
        """Export the Public RSA key to file.

        Uses the PKCS#1 `RSAPublicKey` structure, readable by other RSA tooling.

        Args:
            file: The file to export the public key to.
        """
        keydata = rfc8017.RSAPublicKey()
        keydata["modulus"] = self.mod
        keydata["publicExponent"] = self.expo
        encdata = encoder.encode(keydata)
        write_pem(file, "PKCS1_PUB", encdata)

    @classmethod
    def import_key(cls, file: pathlib.Path) -> "RSAPubKey":
        """Import the Public RSA key from a PKCS#1 PEM file.

        Args:
            file: The file to import the public key from.

        Returns:
            The imported public key.

        Raises:
            KeyParseError: If the PEM payload is not a PKCS#1 public key.
        """
        payload = read_pem(file, "PKCS1_PUB")
        try:
            keydata, _ = decoder.decode(payload, asn1Spec=rfc8017.RSAPublicKey())
        except error.PyAsn1Error as exc:
            raise KeyParseError("PEM payload is not a PKCS#1 RSA public key.") from exc
        pykeyd = localize.encode(keydata)
        return cls.from_numbers(pykeyd["modulus"], pykeyd["publicExponent"])


@dataclasses.dataclass(frozen=True)
class RSAPrivKey(RSAKey):
    """RSA private key (n, d)."""


@dataclasses.dataclass(frozen=True)
class RSAMainKey(KeyPair[RSAPubKey, RSAPrivKey]):
    """Full RSA key: the public key followed by the private key."""
    first_type: ClassVar[type[Key]] = RSAPubKey
    second_type: ClassVar[type[Key]] = RSAPrivKey

    @property
    def pub(self) -> RSAPubKey:
        return self.first

    @property
    def priv(self) -> RSAPrivKey:
        return self.second


def read_pem(file: pathlib.Path, subtype: str) -> bytes:
    """Reads a PEM encoded file.

    Args:
        file: The file to read.
        subtype: The subtype of PEM encoding to accept.

    Returns:
        The decoded PEM encoded file.

    Raises:
        IOError: If the file has invalid PEM encoding.
    """
    curr_type = PEM_TYPES[subtype]
    with open(file, "r", encoding="ascii") as f:
        headline = f.readline().strip()
        if headline != curr_type[0]:
            raise IOError(f"PEM Headline {headline} does not match {curr_type[0]}")
        parcel = []
        while True:
            line = f.readline().strip()
            if not line:
                raise IOError(f"PEM File does not contain footer: {curr_type[1]}")
            if line == curr_type[1]:
                break
            parcel.append(line)
    return base64.b64decode("".join(parcel))


def write_pem(file: pathlib.Path, subtype: str, data: bytes) -> None:
    """Writes a PEM encoded file, 64 base64 characters per line.

    Args:
        file: The file to write.
        subtype: The subtype of PEM encoding to write.
        data: The data to write.
    """
    curr_type = PEM_TYPES[subtype]
    payload = base64.b64encode(data).decode()
    with open(file, "w", encoding="ascii") as f:
        f.write(curr_type[0] + "\n")
        res = "\n".join(payload[i:i + 64] for i in range(0, len(payload), 64))
        res += "\n" if res else ""
        f.write(res)
        f.write(curr_type[1] + "\n")
