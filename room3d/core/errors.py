"""Recoverable error kinds raised by the editor core.

None of these halt the application: each one maps to a user-visible notice
and leaves the editor in a safe state.
"""

from __future__ import annotations


class Room3DError(Exception):
    """Base class for room3d errors."""


class AssetLoadError(Room3DError):
    """An external model could not be fetched or parsed.

    Attributes:
        url: The asset url that failed
        cause: The underlying exception
    """

    def __init__(self, url: str, cause: BaseException):
        self.url = url
        self.cause = cause
        super().__init__(f"Failed to load asset {url!r}: {cause}")


class EmptySelectionError(Room3DError):
    """An operation on the selection was requested with nothing selected."""

    def __init__(self, message: str = "No item is selected"):
        super().__init__(message)


class NoSnapshotError(Room3DError):
    """A layout load was requested but nothing has been saved."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"No saved layout found under '{key}'")


class SnapshotFormatError(Room3DError):
    """A stored layout record exists but cannot be decoded."""


class LayoutSaveError(Room3DError):
    """The layout store rejected a write.

    Attributes:
        cause: The underlying exception
    """

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"Layout could not be saved: {cause}")
