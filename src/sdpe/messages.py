"""Message model: a payload held both as one integer and as a list of fixed width blocks.

Engines work on the blocks, storage and transport use the radix-36 text of the blocks (or of the whole integer).
Raw payloads get a guard byte in front before being turned into an integer, since an integer cannot carry leading
zero bytes.

Typical usage example:

    msg = Message.from_text("Hi there!", bsize=16)
    stored = msg.to_parts_text()
    again = Message.from_parts_text(stored, encrypted=False, bsize=16)
    again.to_text()
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from sdpe import maths
from sdpe.errors import ConstructionError
from sdpe.errors import ConversionError

BSIZE_DEF: int = 8
PADSIZE_DEF: int = 1
GUARD_BYTE: int = 0x01
PARTS_SEPARATOR = ":"


class Message:
    """A payload and its block decomposition.

    `nval == recompose(parts, bsize)` holds between operations. Callers who edit `parts` or `nval` directly must
    resynchronize with `refresh_nval` or `refresh_parts`. Not thread safe.

    Attributes:
        nval: The payload as a single integer.
        parts: The blocks, most significant first. Never empty.
        bsize: The block width in bytes.
        padsize: The number of random bytes the engines add to each block.
        encrypted: Whether the blocks currently hold ciphertext.
    """

    def __init__(self,
                 nval: int,
                 parts: list[int],
                 bsize: int = BSIZE_DEF,
                 padsize: int = PADSIZE_DEF,
                 encrypted: bool = False) -> None:
        if not parts:
            raise ConstructionError("Cannot build a message from an empty block sequence.")
        if bsize < 1:
            raise ValueError("Block size must be >= 1")
        if padsize < 0:
            raise ValueError("Pad size must be >= 0")
        self.nval = nval
        self.parts = list(parts)
        self.bsize = bsize
        self.padsize = padsize
        self.encrypted = encrypted

    @classmethod
    def from_text(cls,
                  text: str | bytes,
                  bsize: int = BSIZE_DEF,
                  padsize: int = PADSIZE_DEF,
                  encoding: str = "utf-8") -> "Message":
        """Build a cleartext message from raw text or bytes.

        Args:
            text: The payload. Strings are encoded with `encoding` first.
            bsize: The block width in bytes.
            padsize: The pad width in bytes.
            encoding: The text encoding. Defaults to utf-8.

        Returns:
            The message, guard byte included.
        """
        raw = text.encode(encoding) if isinstance(text, str) else bytes(text)
        nval = int.from_bytes(bytes([GUARD_BYTE]) + raw, byteorder="big", signed=False)
        return cls(nval, maths.decompose(nval, bsize), bsize, padsize, False)

    @classmethod
    def from_int(cls,
                 value: int,
                 encrypted: bool,
                 bsize: int = BSIZE_DEF,
                 padsize: int = PADSIZE_DEF) -> "Message":
        return cls(value, maths.decompose(value, bsize), bsize, padsize, encrypted)

    @classmethod
    def from_numeric_text(cls,
                          text: str,
                          encrypted: bool,
                          bsize: int = BSIZE_DEF,
                          padsize: int = PADSIZE_DEF) -> "Message":
        """Build a message from the radix-36 text of its integer.

        Raises:
            KeyParseError: If `text` is not a radix-36 number.
        """
        return cls.from_int(maths.from_radix(text), encrypted, bsize, padsize)

    @classmethod
    def from_parts(cls,
                   parts: list[int],
                   encrypted: bool,
                   bsize: int = BSIZE_DEF,
                   padsize: int = PADSIZE_DEF) -> "Message":
        """Build a message from its blocks, kept as given.

        Raises:
            ConstructionError: If `parts` is empty.
        """
        parts = list(parts)
        return cls(maths.recompose(parts, bsize), parts, bsize, padsize, encrypted)

    @classmethod
    def from_parts_text(cls,
                        text: str,
                        encrypted: bool,
                        bsize: int = BSIZE_DEF,
                        padsize: int = PADSIZE_DEF) -> "Message":
        """Build a message from `:` separated radix-36 blocks, as written by `to_parts_text`.

        Raises:
            KeyParseError: If a block is not a radix-36 number.
        """
        parts = [maths.from_radix(part) for part in text.split(PARTS_SEPARATOR)]
        return cls.from_parts(parts, encrypted, bsize, padsize)

    def part(self, index: int) -> int:
        """Block at `index`, most significant first."""
        return self.parts[index]

    def refresh_nval(self) -> None:
        """Recompute `nval` from `parts`."""
        self.nval = maths.recompose(self.parts, self.bsize)

    def refresh_parts(self) -> None:
        """Recompute `parts` from `nval`."""
        self.parts = maths.decompose(self.nval, self.bsize)

    def to_bytes(self) -> bytes:
        """Recover the raw payload.

        Returns:
            The bytes following the guard byte.

        Raises:
            ConversionError: If the guard byte is missing, typically because the message is still encrypted or was
                decrypted with the wrong key.
        """
        raw = bytes(maths.decompose(self.nval, 1))
        if raw[0] != GUARD_BYTE:
            raise ConversionError("Message does not start with the guard byte.")
        return raw[1:]

    def to_text(self, encoding: str = "utf-8") -> str:
        """Recover the payload as text.

        Raises:
            ConversionError: If the payload is not valid `encoding` text.
        """
        raw = self.to_bytes()
        try:
            return raw.decode(encoding)
        except UnicodeDecodeError as exc:
            raise ConversionError(f"Message payload is not valid {encoding} text.") from exc

    def to_numeric_text(self) -> str:
        """Radix-36 text of `nval`."""
        return maths.to_radix(self.nval)

    def to_parts_text(self) -> str:
        """Radix-36 text of every block, joined by `:`, most significant first."""
        return PARTS_SEPARATOR.join(maths.to_radix(part) for part in self.parts)

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(blocks={len(self.parts)}, bsize={self.bsize}, padsize={self.padsize}, "
                f"encrypted={self.encrypted})")
