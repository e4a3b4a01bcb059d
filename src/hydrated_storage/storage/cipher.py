"""
Encryption-at-rest interface for the disk box.

The package does not ship a concrete cipher. Applications pass their own
HydratedCipher subclass to HydratedStorage.build(); the box encrypts every
stored value with it and records key_crc() so a box is never opened with the
wrong key.
"""

from abc import ABC, abstractmethod


class HydratedCipher(ABC):
    """
    Symmetric cipher used to encrypt box values.

    Implementations must be deterministic in key_crc() for a given key and
    must round-trip: decrypt(encrypt(data)) == data.
    """

    @abstractmethod
    def encrypt(self, data: bytes) -> bytes:
        """Encrypt one serialized value."""

    @abstractmethod
    def decrypt(self, data: bytes) -> bytes:
        """Decrypt one serialized value."""

    @abstractmethod
    def key_crc(self) -> int:
        """Checksum of the key, stored alongside the box to detect key mismatches."""
