"""
Exception types for Hydrated Storage.

Every fallible step of the build sequence raises one of these so the
coordinator can make a single degrade-or-not decision. Errors raised after a
storage instance is built propagate to the caller unchanged.
"""


class HydratedStorageError(Exception):
    """Base class for all errors raised by this package."""


class BackendOpenError(HydratedStorageError):
    """The disk box could not be opened or created."""


class CipherError(BackendOpenError):
    """The encryption cipher does not match the box, or data failed to decrypt."""


class SessionStorageUnavailable(HydratedStorageError):
    """No session storage object could be bound in this environment."""


class MigrationError(HydratedStorageError):
    """The legacy cache file could not be removed after migration."""


class StorageValueError(HydratedStorageError, ValueError):
    """A value could not be serialized for storage."""


class BoxClosedError(HydratedStorageError):
    """An operation was attempted on a box that has been closed."""
