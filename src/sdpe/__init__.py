"""Simple Data Privacy Engine: RSA and Caesar block encryption over Python integers, in an Academic Sense.

Provides key generation (with a threaded prime search for RSA), block-wise encryption, decryption, signing and
verification of messages, and text serialization of keys and messages. Not hardened: no OAEP, no constant-time
arithmetic, probable primes only.

Typical usage example:

    rsa = RSAEngine()
    key = rsa.generate(64)
    msg = Message.from_text("Hi there!")
    rsa.encrypt(msg, key.pub)
    stored = msg.to_parts_text()
    msg = Message.from_parts_text(stored, encrypted=True)
    rsa.decrypt(msg, key.priv)
    r = msg.to_text()
"""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
from sdpe.engines import CesarEngine
from sdpe.engines import Engine
from sdpe.engines import get_engine
from sdpe.engines import RSAEngine
from sdpe.errors import ConstructionError
from sdpe.errors import ConversionError
from sdpe.errors import ExponentSelectionError
from sdpe.errors import KeyGenerationError
from sdpe.errors import KeyParseError
from sdpe.errors import SDPEError
from sdpe.keygen import check_prime
from sdpe.keygen import generate_key_pair
from sdpe.keygen import generate_primes
from sdpe.keys import KeyPair
from sdpe.keys import NumKey
from sdpe.keys import RSAMainKey
from sdpe.keys import RSAPrivKey
from sdpe.keys import RSAPubKey
from sdpe.messages import Message

__version__ = "0.1.0"
__all__ = [
    "CesarEngine",
    "Engine",
    "RSAEngine",
    "get_engine",
    "Message",
    "KeyPair",
    "NumKey",
    "RSAMainKey",
    "RSAPrivKey",
    "RSAPubKey",
    "check_prime",
    "generate_primes",
    "generate_key_pair",
    "SDPEError",
    "KeyParseError",
    "ConversionError",
    "ConstructionError",
    "ExponentSelectionError",
    "KeyGenerationError",
]
