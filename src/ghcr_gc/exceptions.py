"""Exceptions raised by registry clients."""

__all__ = [
    "AuthError",
    "NotFound",
    "RegistryError",
    "RegistryUnavailable",
]


class RegistryError(Exception):
    """Base class for failures talking to the package registry."""


class RegistryUnavailable(RegistryError):
    """The registry could not be reached or returned an unexpected error.

    Timeouts on individual calls are reported as this as well.
    """


class AuthError(RegistryError):
    """The registry rejected our credentials."""


class NotFound(RegistryError):
    """The requested package or version does not exist.

    On deletion this usually means something else already removed the
    version.
    """
