"""Errors raised inside the navigation subsystem.

None of these are allowed to escape into page rendering; the seams that call
into the resolver, the stores and the access clients catch them and fall back
to a sparser menu.
"""


class NavigationError(Exception):
    """Base class for navigation/menu failures."""


class AccessFetchError(NavigationError):
    """A permission or module fetch failed at the transport level."""

    def __init__(self, message, status_code=None):
        super().__init__(message)
        self.status_code = status_code


class MalformedAccessData(NavigationError):
    """The access-control collaborator returned a payload we cannot read."""


class UnknownPermissionKey(MalformedAccessData):
    """A permission key outside the known catalog was received."""

    def __init__(self, keys):
        self.keys = sorted(keys)
        super().__init__(f"Unknown permission key(s): {', '.join(self.keys)}")


class StorageUnavailable(NavigationError):
    """The key/value store backing menu preferences cannot be used."""
