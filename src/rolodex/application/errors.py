"""Errors raised by contact providers. The session catches them; collaborators only see messages."""


class RolodexError(Exception):
    """Base class for errors surfaced while loading contacts."""

    default_message = "Failed to load contacts."

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.default_message)

    @property
    def message(self) -> str:
        return str(self)


class PermissionDenied(RolodexError):
    """The device directory refused access. Not retried automatically."""

    default_message = "Contact permissions are required."


class RetrievalFailure(RolodexError):
    """The device directory failed to return records. The caller may retry."""
