# pylint: disable=missing-module-docstring
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import pytest

from sdpe import engines
from sdpe import keys
from sdpe.errors import ConversionError
from sdpe.messages import Message

standard_payload = "The quick brown fox jumps over the lazy dog1234567890!@#$%^&*()-_=+[{}];:\\|<>,./?~`'\""
TOY_KEY = keys.RSAMainKey(keys.RSAPubKey.from_numbers(3233, 17), keys.RSAPrivKey.from_numbers(3233, 2753))


@pytest.mark.parametrize("value", [0, 1, 255, 2**64 + 3])
@pytest.mark.parametrize("padsize", [0, 1, 4])
def test_pad_unpad(rsa_engine, value, padsize):
    padded = rsa_engine.pad(value, padsize)
    assert padded >> 8 * padsize == value
    assert rsa_engine.unpad(padded, padsize) == value


def test_pad_zero_is_identity(cesar_engine):
    assert cesar_engine.pad(1234, 0) == 1234


def test_rsa_encode_toy(rsa_engine):
    assert rsa_engine.encode(65, TOY_KEY.pub, 0) == 2790
    assert rsa_engine.decode(2790, TOY_KEY.priv, 0) == 65


@pytest.mark.parametrize("value", [0, 1, 9, 10, 11])
def test_rsa_encode_decode_padded(rsa_engine, value):
    assert rsa_engine.decode(rsa_engine.encode(value, TOY_KEY.pub, 1), TOY_KEY.priv, 1) == value


def test_rsa_block_too_large(rsa_engine):
    msg = Message.from_text("test")
    with pytest.raises(ValueError):
        rsa_engine.encrypt(msg, TOY_KEY.pub)


def test_rsa_roundcryption(rsa_engine, rsa_key):
    msg = Message.from_text("test rsa")
    plain_parts = list(msg.parts)
    rsa_engine.encrypt(msg, rsa_key.pub)
    assert msg.encrypted
    assert msg.parts != plain_parts
    rsa_engine.decrypt(msg, rsa_key.priv)
    assert not msg.encrypted
    assert msg.parts == plain_parts
    assert msg.to_text() == "test rsa"


@pytest.mark.parametrize("bsize,padsize", [(1, 0), (8, 1), (16, 2), (24, 8)])
def test_rsa_roundcryption_stored(rsa_engine, rsa_key, bsize, padsize):
    msg = Message.from_text(standard_payload, bsize, padsize)
    rsa_engine.encrypt(msg, rsa_key.pub)
    stored = msg.to_parts_text()

    again = Message.from_parts_text(stored, True, bsize, padsize)
    rsa_engine.decrypt(again, rsa_key.priv)
    assert again.to_text() == standard_payload


def test_rsa_sign_verify(rsa_engine, rsa_key):
    msg = Message.from_text("signed by me")
    rsa_engine.encrypt(msg, rsa_key.priv)
    rsa_engine.decrypt(msg, rsa_key.pub)
    assert msg.to_text() == "signed by me"


def test_rsa_padding_randomizes(rsa_engine, rsa_key):
    first = Message.from_text("same", padsize=8)
    second = Message.from_text("same", padsize=8)
    rsa_engine.encrypt(first, rsa_key.pub)
    rsa_engine.encrypt(second, rsa_key.pub)
    assert first.parts != second.parts


def test_rsa_generate(rsa_engine, mocker):
    mocker.patch("sdpe.keygen.generate_key_pair", return_value=((3233, 17), (3233, 2753)))
    assert rsa_engine.generate(8, workers=3) == TOY_KEY
    assert rsa_engine.gen_def() == TOY_KEY


def test_rsa_generate_real(rsa_key):
    assert isinstance(rsa_key, keys.RSAMainKey)
    assert rsa_key.pub.mod == rsa_key.priv.mod
    assert rsa_key.pub.c_rsa(rsa_key.priv.c_rsa(42)) == 42


def test_cesar_roundcryption(cesar_engine):
    key = cesar_engine.generate()
    msg = Message.from_text(standard_payload)
    with pytest.warns(RuntimeWarning, match="Caesar encryption is unsecure"):
        cesar_engine.encrypt(msg, key)
    assert msg.encrypted

    again = Message.from_parts_text(msg.to_parts_text(), True)
    cesar_engine.decrypt(again, key)
    assert again.to_text() == standard_payload


def test_cesar_transforms(cesar_engine):
    assert cesar_engine.transform_encrypt(10, keys.NumKey(5)) == 15
    assert cesar_engine.transform_decrypt(15, keys.NumKey(5)) == 10


def test_cesar_wrong_key(cesar_engine):
    msg = Message.from_text("test")
    with pytest.warns(RuntimeWarning):
        cesar_engine.encrypt(msg, keys.NumKey(5))
    with pytest.raises(ValueError):
        cesar_engine.decrypt(msg, keys.NumKey(10**30))


def test_ciphertext_is_not_text(cesar_engine):
    msg = Message.from_text("test", padsize=1)
    with pytest.warns(RuntimeWarning):
        cesar_engine.encrypt(msg, keys.NumKey(2**60))
    with pytest.raises(ConversionError):
        msg.to_text()


@pytest.mark.parametrize("size", [1, 2, 4])
def test_cesar_generate(cesar_engine, size):
    for _ in range(20):
        assert 0 <= cesar_engine.generate(size).value < 1 << 8 * size


def test_cesar_generate_validates(cesar_engine):
    with pytest.raises(ValueError):
        cesar_engine.generate(0)


@pytest.mark.parametrize("name,cls", [("rsa", engines.RSAEngine), ("RSA", engines.RSAEngine),
                                      ("cesar", engines.CesarEngine)])
def test_get_engine(name, cls):
    assert isinstance(engines.get_engine(name), cls)


def test_get_engine_unknown():
    with pytest.raises(KeyError, match="Unknown engine"):
        engines.get_engine("enigma")


def test_main_key_types():
    assert engines.RSAEngine.main_key is keys.RSAMainKey
    assert engines.CesarEngine.main_key is keys.NumKey


def test_failed_encrypt_leaves_message(rsa_engine):
    msg = Message.from_parts([5, 4000], False, bsize=8, padsize=0)
    with pytest.raises(ValueError):
        rsa_engine.encrypt(msg, TOY_KEY.pub)
    assert msg.parts == [5, 4000]
    assert msg.nval == Message.from_parts([5, 4000], False, bsize=8).nval
    assert not msg.encrypted


def test_failed_decrypt_leaves_message(cesar_engine):
    msg = Message.from_parts([10**6, 5], True, bsize=8, padsize=0)
    nval = msg.nval
    with pytest.raises(ValueError):
        cesar_engine.decrypt(msg, keys.NumKey(100))
    assert msg.parts == [10**6, 5]
    assert msg.nval == nval
    assert msg.encrypted
