"""Application ports (interfaces). Implemented by infrastructure adapters."""

from collections.abc import Mapping, Sequence
from typing import Any, Protocol


class ContactProvider(Protocol):
    """Retrieves the full raw record set from the device contact directory."""

    async def fetch_all(self) -> Sequence[Mapping[str, Any]]:
        """Return every raw record in one call.

        Raises PermissionDenied if access is refused, RetrievalFailure otherwise.
        """
        ...


class KeyValueStore(Protocol):
    """Small persistent string store for favorites, filters and last sync time."""

    def get(self, key: str) -> str | None:
        """Return the stored value, or None."""
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        """Remove the key. Missing keys are ignored."""
        ...
