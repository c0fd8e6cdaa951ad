# pylint: disable=missing-module-docstring
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import binascii
import dataclasses

from cryptography.hazmat.primitives import serialization
import pytest
import sympy

from sdpe import keys
from sdpe.errors import KeyParseError


def make_main(n: int, e: int, d: int) -> keys.RSAMainKey:
    return keys.RSAMainKey(keys.RSAPubKey.from_numbers(n, e), keys.RSAPrivKey.from_numbers(n, d))


def test_numkey_serialize():
    assert keys.NumKey(9).serialize() == "9"
    assert str(keys.NumKey(36)) == "10"


def test_numkey_parse():
    assert keys.NumKey.parse("9").value == 9
    assert keys.NumKey.parse("zz") == keys.NumKey(1295)


@pytest.mark.parametrize("text", ["", "-1", "9::8", "a b"])
def test_numkey_parse_rejects(text):
    with pytest.raises(KeyParseError):
        keys.NumKey.parse(text)


def test_numkey_validates():
    with pytest.raises(ValueError):
        keys.NumKey(-1)


def test_numkey_immutable():
    k = keys.NumKey(5)
    with pytest.raises(dataclasses.FrozenInstanceError):
        k.value = 6


def test_pair_serialize_nested():
    k = keys.RSAMainKey(keys.RSAPubKey.from_numbers(9, 8), keys.RSAPrivKey.from_numbers(7, 6))
    assert k.serialize() == "9::8::7::6"


def test_pair_parse_nested():
    k = keys.RSAMainKey.parse("9::8::7::6")
    assert k.first.first.value == 9
    assert k.first.second.value == 8
    assert k.second.first.value == 7
    assert k.second.second.value == 6
    assert isinstance(k.pub, keys.RSAPubKey)
    assert isinstance(k.priv, keys.RSAPrivKey)


def test_plain_pair_parse():
    k = keys.KeyPair.parse("a::b")
    assert k == keys.KeyPair(keys.NumKey(10), keys.NumKey(11))


@pytest.mark.parametrize("text", ["9", "9::8::7", "9::8::7::6::5"])
def test_pair_parse_odd_segments(text):
    with pytest.raises(KeyParseError, match="odd number of segments"):
        keys.RSAMainKey.parse(text)


@pytest.mark.parametrize("text", ["9::8", "9::8::7::6::5::4"])
def test_pair_parse_wrong_depth(text):
    # Even at the top but odd once bisected.
    with pytest.raises(KeyParseError):
        keys.RSAMainKey.parse(text)


def test_pair_parse_bad_digit():
    with pytest.raises(KeyParseError):
        keys.RSAPubKey.parse("9::-8")


@pytest.mark.parametrize("n,e,d", [(3233, 17, 2753), (0, 0, 0), (2**2048 - 1, 3, 2**1024 + 7)])
def test_pair_round(n, e, d):
    k = make_main(n, e, d)
    assert keys.RSAMainKey.parse(k.serialize()) == k
    assert keys.RSAPubKey.parse(k.pub.serialize()) == k.pub


def test_pair_hashable():
    assert len({make_main(3233, 17, 2753), make_main(3233, 17, 2753)}) == 1


def test_rsa_key_properties():
    k = make_main(3233, 17, 2753)
    assert k.pub.mod == k.priv.mod == 3233
    assert k.pub.expo == 17
    assert k.priv.expo == 2753
    assert k.pub.bsize == 2
    assert keys.RSAPubKey.from_numbers(256, 3).bsize == 2
    assert keys.RSAPubKey.from_numbers(255, 3).bsize == 1


def test_c_rsa_round():
    k = make_main(3233, 17, 2753)
    assert k.pub.c_rsa(65) == 2790
    assert k.priv.c_rsa(2790) == 65
    assert k.pub.c_rsa(k.priv.c_rsa(123)) == 123


@pytest.mark.parametrize("value", [-1, 3233, 5000])
def test_c_rsa_range(value):
    k = make_main(3233, 17, 2753)
    with pytest.raises(ValueError):
        k.pub.c_rsa(value)


def test_public_export(tmp_path):
    # Other tooling refuses toy sized moduli, so this one is 1024 bits.
    pub = keys.RSAPubKey.from_numbers(sympy.nextprime(2**512 + 12345) * sympy.nextprime(2**512 + 99999), 65537)
    des = tmp_path / "key.pub"
    pub.export(des)
    with open(des, "rb") as fi:
        interkey = serialization.load_pem_public_key(fi.read())
    assert interkey.public_numbers().n == pub.mod
    assert interkey.public_numbers().e == pub.expo


def test_public_export_import(rsa_key, tmp_path):
    des = tmp_path / "key.pub"
    rsa_key.pub.export(des)
    assert keys.RSAPubKey.import_key(des) == rsa_key.pub


def test_public_import_rejects_payload(tmp_path):
    pld = tmp_path / "key.pub"
    keys.write_pem(pld, "PKCS1_PUB", b"Not DER at all")
    with pytest.raises(KeyParseError):
        keys.RSAPubKey.import_key(pld)


@pytest.mark.parametrize("payload", [b"", b"Quick!", b"A" * 64, bytes(range(256))])
def test_pem_read_write(payload, tmp_path):
    pld = tmp_path / "testpem.pem"
    keys.write_pem(pld, "PKCS1_PUB", payload)
    assert keys.read_pem(pld, "PKCS1_PUB") == payload


def test_pem_read_validates_header(tmp_path):
    pld = tmp_path / "testpem.pem"
    with open(pld, "w", encoding="ascii") as fi:
        fi.write("-----BEGIN GARBAGE DATA-----\n")
        fi.write("QUJD\n")
        fi.write("-----END RSA PUBLIC KEY-----\n")
    with pytest.raises(IOError):
        keys.read_pem(pld, "PKCS1_PUB")


def test_pem_read_validates_footer(tmp_path):
    pld = tmp_path / "testpem.pem"
    with open(pld, "w", encoding="ascii") as fi:
        fi.write("-----BEGIN RSA PUBLIC KEY-----\n")
        fi.write("QUJD\n")
        fi.write("\n" * 10)
        fi.write("-----END RSA PUBLIC KEY-----\n")
    with pytest.raises(IOError):
        keys.read_pem(pld, "PKCS1_PUB")


def test_pem_read_nonbase64(tmp_path):
    pld = tmp_path / "testpem.pem"
    with open(pld, "w", encoding="ascii") as fi:
        fi.write("-----BEGIN RSA PUBLIC KEY-----\n")
        fi.write("QUJDR\n")
        fi.write("-----END RSA PUBLIC KEY-----\n")
    with pytest.raises(binascii.Error):
        keys.read_pem(pld, "PKCS1_PUB")
