"""Exceptions raised by the engine, key and message layers.

Parsing and conversion failures derive from ValueError, failures of the key derivation or of the generation pool
from RuntimeError, so callers catching the builtin families keep working.
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0


class SDPEError(Exception):
    """Base class of every library specific error."""


class KeyParseError(SDPEError, ValueError):
    """Key or number text is malformed (bad radix digits, odd `::` segment count, bad PEM payload)."""


class ConversionError(SDPEError, ValueError):
    """Recovered blocks do not form the expected bytes or text. Expected when reading ciphertext as text."""


class ConstructionError(SDPEError, ValueError):
    """A message or integer was to be built from an empty block sequence."""


class ExponentSelectionError(SDPEError, RuntimeError):
    """Every prime of the exponent table divides the totient."""


class KeyGenerationError(SDPEError, RuntimeError):
    """A worker of the prime generation pool died."""
