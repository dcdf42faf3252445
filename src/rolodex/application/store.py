"""Aggregate store: the normalized contacts, how many are released, and the favorites overlay."""

from collections.abc import Callable, Iterable

from rolodex.domain import Contact

Listener = Callable[[], None]


class AggregateStore:
    """Holds every normalized contact of the current load in release order.

    Only the first `released` records are public (the visible aggregate); the
    rest are the buffer the loader drains. Favorites are an id set kept apart
    from the records so reloads never lose them. Listeners run after every
    change.
    """

    def __init__(self) -> None:
        self._records: list[Contact] = []
        self._positions: dict[str, int] = {}
        self._released = 0
        self._favorites: set[str] = set()
        self._listeners: list[Listener] = []

    def subscribe(self, listener: Listener) -> None:
        self._listeners.append(listener)

    def _notify(self) -> None:
        for listener in self._listeners:
            listener()

    # --- records ---

    @property
    def visible(self) -> list[Contact]:
        """The released prefix of the aggregate."""
        return self._records[: self._released]

    @property
    def all_records(self) -> list[Contact]:
        """Released and buffered records together."""
        return list(self._records)

    @property
    def released_count(self) -> int:
        return self._released

    @property
    def pending_count(self) -> int:
        return len(self._records) - self._released

    def get(self, contact_id: str) -> Contact | None:
        """Return a released contact by id, or None."""
        position = self._positions.get(contact_id)
        if position is None or position >= self._released:
            return None
        return self._records[position]

    def replace(self, records: Iterable[Contact], *, release: int = 0) -> None:
        """Swap in a new record set and release its first `release` records. Ids must be unique."""
        self._records = list(records)
        self._positions = {c.id: i for i, c in enumerate(self._records)}
        self._released = max(0, min(release, len(self._records)))
        self._notify()

    def release(self, count: int) -> int:
        """Release up to count buffered records. Returns how many were released."""
        step = max(0, min(count, self.pending_count))
        if step:
            self._released += step
            self._notify()
        return step

    def clear(self) -> None:
        self._records = []
        self._positions = {}
        self._released = 0
        self._notify()

    # --- favorites overlay ---

    @property
    def favorite_ids(self) -> frozenset[str]:
        return frozenset(self._favorites)

    def is_favorite(self, contact_id: str) -> bool:
        return contact_id in self._favorites

    def set_favorites(self, ids: Iterable[str]) -> None:
        self._favorites = {str(i) for i in ids}
        self._notify()

    def toggle_favorite(self, contact_id: str) -> bool:
        """Flip one id's flag. Returns the new value."""
        if contact_id in self._favorites:
            self._favorites.discard(contact_id)
            value = False
        else:
            self._favorites.add(contact_id)
            value = True
        self._notify()
        return value
