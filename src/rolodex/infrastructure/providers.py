"""ContactProvider adapters: a fixed in-memory list and a device export file."""

import asyncio
import json
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any

from rolodex.application.errors import PermissionDenied, RetrievalFailure


class StaticContactProvider:
    """Serves a fixed list of raw records. Used for tests, demos and mock data."""

    def __init__(
        self,
        records: Sequence[Mapping[str, Any]] = (),
        *,
        permission_granted: bool = True,
    ) -> None:
        self.records = list(records)
        self.permission_granted = permission_granted
        self.calls = 0

    async def fetch_all(self) -> list[Mapping[str, Any]]:
        self.calls += 1
        if not self.permission_granted:
            raise PermissionDenied("Contact permissions are required.")
        return list(self.records)


class JsonFileContactProvider:
    """Reads raw records from a JSON array exported from the device directory."""

    def __init__(self, path: Path | str) -> None:
        self._path = Path(path)

    async def fetch_all(self) -> list[Mapping[str, Any]]:
        try:
            raw = await asyncio.to_thread(self._path.read_text, encoding="utf-8")
        except OSError as e:
            raise RetrievalFailure(f"Could not read contacts export {self._path}.") from e
        try:
            data = json.loads(raw)
        except ValueError as e:
            raise RetrievalFailure(f"Contacts export {self._path} is not valid JSON.") from e
        if not isinstance(data, list):
            raise RetrievalFailure(f"Contacts export {self._path} must be a JSON list.")
        return data
