"""Configures pytest further, and shares generated keys across test modules."""
# Copyright (c) 2025-present Tech. TTGames
# SPDX-License-Identifier: EPL-2.0
import pytest

from sdpe import engines

TEST_PRIME_SIZE = 32


def pytest_addoption(parser):
    parser.addoption("--skip-slow", action="store_true", default=False, help="skip slower tests")
    parser.addoption("--run-extreme", action="store_true", default=False, help="run extreme value extremely slow tests")


def pytest_collection_modifyitems(config, items):
    skipdict = {}
    if config.getoption("--skip-slow"):
        skipdict["slow"] = pytest.mark.skip(reason="Slow test: needs no --skip-slow option")
    if not config.getoption("--run-extreme"):
        skipdict["extreme"] = pytest.mark.skip(reason="Extreme test: needs --run-extreme option")
    if not skipdict:
        return
    for item in items:
        for k, v in skipdict.items():
            if k in item.keywords:
                item.add_marker(v)


@pytest.fixture(scope="session")
def rsa_engine() -> engines.RSAEngine:
    return engines.RSAEngine()


@pytest.fixture(scope="session")
def cesar_engine() -> engines.CesarEngine:
    return engines.CesarEngine()


@pytest.fixture(scope="session")
def rsa_key(rsa_engine):
    """One main key for the whole session, generation is the slow part."""
    return rsa_engine.generate(TEST_PRIME_SIZE, workers=2)
