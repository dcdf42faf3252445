"""ContactSession: the one object collaborators hold to load, query and flag contacts."""

import json
import logging
from datetime import datetime
from typing import Any

from rolodex.application.loader import IncrementalLoader
from rolodex.application.normalizer import PhoneFormatter, normalize_contact
from rolodex.application.ports import ContactProvider, KeyValueStore
from rolodex.application.query import QueryEngine, SearchIndex
from rolodex.application.stats import compute_insights, compute_stats
from rolodex.application.store import AggregateStore
from rolodex.config import Settings
from rolodex.domain import Contact, ContactInsights, ContactStats, SearchFilters

logger = logging.getLogger(__name__)


class ContactSession:
    """Owns the aggregate, the favorites overlay and the filters for one session.

    Stats and the filtered view are derived state: they are recomputed in full
    whenever the aggregate, the overlay or the filters change, and read back
    through properties. Collaborators never mutate anything directly.
    """

    def __init__(
        self,
        provider: ContactProvider,
        kv_store: KeyValueStore,
        settings: Settings | None = None,
        *,
        phone_formatter: PhoneFormatter | None = None,
    ) -> None:
        self._settings = settings or Settings()
        self._kv = kv_store
        self._keys = self._settings.storage_keys
        self._store = AggregateStore()
        self._engine = QueryEngine(
            SearchIndex(
                fuzzy=self._settings.fuzzy_search,
                fuzzy_threshold=self._settings.fuzzy_threshold,
            )
        )
        self._loader = IncrementalLoader(
            provider,
            self._store,
            self._settings.loader,
            normalizer=lambda raw, i: normalize_contact(
                raw, position=i, phone_formatter=phone_formatter
            ),
        )
        self._filters = self._restore_filters()
        self._stored_sync_time = self._restore_last_sync()
        self._stats = ContactStats()
        self._insights = ContactInsights()
        self._filtered: list[Contact] = []
        self._store.subscribe(self._recompute)
        self._store.set_favorites(self._restore_favorites())

    # --- persisted state ---

    def _read_json(self, key: str) -> Any:
        raw = self._kv.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except ValueError:
            logger.warning("Ignoring unreadable stored value for %s", key)
            return None

    def _restore_favorites(self) -> list[str]:
        data = self._read_json(self._keys.favorites)
        if not isinstance(data, list):
            return []
        return [str(i) for i in data]

    def _restore_filters(self) -> SearchFilters:
        default = self._settings.default_filters
        data = self._read_json(self._keys.filters)
        if not isinstance(data, dict):
            return default
        try:
            return SearchFilters.from_dict(data, default=default)
        except (TypeError, ValueError) as e:
            logger.warning("Failed to load saved filters: %s", e)
            return default

    def _restore_last_sync(self) -> datetime | None:
        raw = self._kv.get(self._keys.last_sync)
        if not raw:
            return None
        try:
            return datetime.fromisoformat(raw)
        except ValueError:
            logger.warning("Ignoring unreadable last sync time %r", raw)
            return None

    # --- derived state ---

    def _recompute(self) -> None:
        records = self._store.visible
        favorite_ids = self._store.favorite_ids
        self._stats = compute_stats(records, favorite_ids)
        self._insights = compute_insights(records)
        self._engine.reindex(records)
        self._filtered = self._engine.run(records, self._filters, favorite_ids)

    # --- read side ---

    @property
    def contacts(self) -> list[Contact]:
        """Visible batch: the released prefix of the aggregate, favorite flags applied."""
        favorite_ids = self._store.favorite_ids
        return [c.with_favorite(c.id in favorite_ids) for c in self._store.visible]

    @property
    def filtered_contacts(self) -> list[Contact]:
        return list(self._filtered)

    @property
    def stats(self) -> ContactStats:
        return self._stats

    @property
    def insights(self) -> ContactInsights:
        return self._insights

    @property
    def filters(self) -> SearchFilters:
        return self._filters

    @property
    def loading(self) -> bool:
        return self._loader.in_flight and not self._loader.refreshing

    @property
    def loading_more(self) -> bool:
        """True only while listeners run for a load_more_contacts() release."""
        return self._loader.loading_more

    @property
    def refreshing(self) -> bool:
        return self._loader.refreshing

    @property
    def error(self) -> str | None:
        return self._loader.error

    @property
    def load_state(self) -> str:
        return self._loader.state

    @property
    def fully_loaded(self) -> bool:
        return self._loader.fully_loaded

    @property
    def last_sync_time(self) -> datetime | None:
        return self._loader.last_sync_time or self._stored_sync_time

    def get_contact(self, contact_id: str) -> Contact | None:
        """Return a visible contact by id with its favorite flag, or None."""
        contact = self._store.get(contact_id)
        if contact is None:
            return None
        return contact.with_favorite(self._store.is_favorite(contact_id))

    # --- operations ---

    async def load_contacts(self) -> bool:
        """Full load from the provider. False if rejected (load in flight) or failed."""
        ok = await self._loader.load_all()
        if ok:
            self._save_last_sync()
        return ok

    async def refresh_contacts(self) -> bool:
        """Delta-sync with the provider. False if rejected (load in flight) or failed."""
        ok = await self._loader.refresh()
        if ok:
            self._save_last_sync()
        return ok

    def load_more_contacts(self) -> int:
        """Release the next batch now. Returns how many contacts became visible."""
        return self._loader.load_more()

    def toggle_favorite(self, contact_id: str) -> bool:
        """Flip the favorite flag of one id. Returns the new value."""
        value = self._store.toggle_favorite(contact_id)
        self._kv.set(self._keys.favorites, json.dumps(sorted(self._store.favorite_ids)))
        return value

    def update_filters(self, **changes: Any) -> SearchFilters:
        """Apply a partial filter update and recompute the filtered view immediately.

        Raises ValueError for unknown fields or invalid sort settings.
        """
        self._filters = self._filters.merged(**changes)
        self._kv.set(self._keys.filters, json.dumps(self._filters.to_dict()))
        self._recompute()
        return self._filters

    async def wait_until_loaded(self) -> None:
        await self._loader.wait_until_loaded()

    def close(self) -> None:
        """End the session: cancel background batches and drop in-flight results."""
        self._loader.close()

    def _save_last_sync(self) -> None:
        if self._loader.last_sync_time is not None:
            self._kv.set(self._keys.last_sync, self._loader.last_sync_time.isoformat())
