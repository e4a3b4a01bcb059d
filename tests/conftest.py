"""
Shared fixtures for the Hydrated Storage test suite.
"""

import sys
import zlib

import pytest

from hydrated_storage.storage.cipher import HydratedCipher
from hydrated_storage.storage.hydrated import registry


class XorCipher(HydratedCipher):
    """Toy cipher, enough to tell encrypted bytes from plaintext."""

    def __init__(self, key: bytes):
        self.key = key

    def encrypt(self, data: bytes) -> bytes:
        return bytes(b ^ self.key[i % len(self.key)] for i, b in enumerate(data))

    def decrypt(self, data: bytes) -> bytes:
        return self.encrypt(data)

    def key_crc(self) -> int:
        return zlib.crc32(self.key)


class FakeJsStorage:
    """Stands in for window.sessionStorage."""

    def __init__(self):
        self.items = {}

    def getItem(self, key):
        return self.items.get(key)

    def setItem(self, key, value):
        self.items[key] = value

    def removeItem(self, key):
        self.items.pop(key, None)

    def clear(self):
        self.items.clear()


@pytest.fixture(autouse=True)
def reset_registry():
    """Every test starts without a published instance."""
    registry.reset()
    yield
    registry.reset()


@pytest.fixture
def no_browser(monkeypatch):
    """Make `import js` fail even if some js package is installed."""
    monkeypatch.setitem(sys.modules, "js", None)


@pytest.fixture
def cipher_factory():
    return XorCipher


@pytest.fixture
def js_storage():
    return FakeJsStorage()
