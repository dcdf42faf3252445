"""Incremental loader: one provider call per load, then batched release into the aggregate store.

The first `initial_batch` records are released as soon as the provider
answers; the rest are released `batch_size` at a time by call_later callbacks
on the running event loop, so the host gets control back between batches.
Only one load or refresh runs at a time; extra calls are rejected, not queued.
"""

import asyncio
import logging
from collections.abc import Callable, Mapping, Sequence
from datetime import datetime, timezone
from typing import Any

from rolodex.application.errors import RetrievalFailure, RolodexError
from rolodex.application.load_machine import (
    FAILED,
    FULLY_LOADED,
    INITIAL_READY,
    LOADING_INITIAL,
    get_state_chart,
)
from rolodex.application.merge import merge_contacts
from rolodex.application.normalizer import normalize_contact
from rolodex.application.ports import ContactProvider
from rolodex.application.store import AggregateStore
from rolodex.config import LoaderSettings
from rolodex.domain import Contact

logger = logging.getLogger(__name__)

Normalizer = Callable[[Mapping[str, Any], int], Contact]


def _default_normalizer(raw: Mapping[str, Any], position: int) -> Contact:
    return normalize_contact(raw, position=position)


class IncrementalLoader:
    """Owns the load state machine, the drain timer and the error of the last attempt."""

    def __init__(
        self,
        provider: ContactProvider,
        store: AggregateStore,
        settings: LoaderSettings | None = None,
        *,
        normalizer: Normalizer | None = None,
    ) -> None:
        self._provider = provider
        self._store = store
        self._settings = settings or LoaderSettings()
        self._normalize = normalizer or _default_normalizer
        self._chart = get_state_chart()
        self._state = self._chart.initial
        self._generation = 0
        self._timer: asyncio.TimerHandle | None = None
        self._settled = asyncio.Event()
        self._settled.set()
        self.refreshing = False
        self.loading_more = False
        self.error: str | None = None
        self.last_sync_time: datetime | None = None

    @property
    def state(self) -> str:
        return self._state

    @property
    def in_flight(self) -> bool:
        """True while a load or refresh is waiting on the provider."""
        return self._state == LOADING_INITIAL

    @property
    def fully_loaded(self) -> bool:
        return self._state == FULLY_LOADED

    @property
    def failed(self) -> bool:
        return self._state == FAILED

    def _send(self, event: str) -> None:
        next_state = self._chart.next_state(self._state, event)
        if next_state is None:
            logger.debug("Loader ignored %s in state %s", event, self._state)
            return
        self._state = next_state

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    # --- top-level loads ---

    async def load_all(self) -> bool:
        """Replace the aggregate with a fresh pull. Returns False if rejected or failed."""
        return await self._run(merge=False)

    async def refresh(self) -> bool:
        """Merge a fresh pull into the aggregate (newer modified_at wins, nothing removed)."""
        if self.in_flight:
            logger.debug("Refresh rejected: a load is already in flight")
            return False
        self.refreshing = True
        try:
            return await self._run(merge=True)
        finally:
            self.refreshing = False

    async def _run(self, *, merge: bool) -> bool:
        if self.in_flight:
            logger.debug("Load rejected: a load is already in flight")
            return False
        self._cancel_timer()
        self._generation += 1
        generation = self._generation
        self._settled.clear()
        self.error = None
        self._send("LOAD")
        logger.info("Loading contacts (%s)", "refresh" if merge else "full load")
        try:
            return await self._load(generation, merge=merge)
        except BaseException:
            # Cancelled or broken mid-load: leave loading_initial so later loads are accepted.
            if generation == self._generation:
                self._cancel_timer()
                if self.in_flight:
                    self._send("CLOSE")
                self._settled.set()
            raise

    async def _load(self, generation: int, *, merge: bool) -> bool:
        try:
            raw_records = await self._provider.fetch_all()
        except RolodexError as e:
            logger.warning("Loading contacts failed: %s", e.message)
            return self._fail(generation, e)
        except Exception:
            logger.exception("Contact provider failed unexpectedly")
            return self._fail(generation, RetrievalFailure())

        if generation != self._generation:
            logger.info("Discarding contacts from a superseded load")
            return False

        incoming = [self._normalize(raw, i) for i, raw in enumerate(raw_records)]
        base = self._store.all_records if merge else []
        # Merging into an empty base also collapses duplicate ids within one pull.
        records = merge_contacts(base, incoming)
        self._publish(records, generation)
        self.last_sync_time = datetime.now(timezone.utc)
        logger.info(
            "Loaded %d contacts (%d released, %d in background)",
            len(records),
            self._store.released_count,
            self._store.pending_count,
        )
        return True

    def _fail(self, generation: int, error: RolodexError) -> bool:
        if generation != self._generation:
            return False
        self.error = error.message
        self._cancel_timer()
        self._store.clear()
        self._send("FAIL")
        self._settled.set()
        return False

    # --- batching ---

    def _publish(self, records: Sequence[Contact], generation: int) -> None:
        self._store.replace(records, release=self._settings.initial_batch)
        self._send("INITIAL_READY")
        if self._store.pending_count:
            self._schedule_drain(generation)
        else:
            self._finish()

    def _schedule_drain(self, generation: int) -> None:
        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(
            self._settings.background_delay, self._drain_batch, generation
        )

    def _drain_batch(self, generation: int) -> None:
        self._timer = None
        if generation != self._generation:
            return
        self._store.release(self._settings.batch_size)
        if self._store.pending_count:
            self._schedule_drain(generation)
        else:
            self._finish()

    def _finish(self) -> None:
        self._cancel_timer()
        self._send("DRAINED")
        self._settled.set()

    def load_more(self) -> int:
        """Release the next batch right away. Returns how many records were released.

        The release is synchronous, so `loading_more` is only ever True while
        store listeners run for that release.
        """
        if self.in_flight or self._state != INITIAL_READY:
            return 0
        self.loading_more = True
        try:
            released = self._store.release(self._settings.batch_size)
        finally:
            self.loading_more = False
        if not self._store.pending_count:
            self._finish()
        return released

    async def wait_until_loaded(self) -> None:
        """Wait until the current load has fully drained or failed."""
        await self._settled.wait()

    def close(self) -> None:
        """Stop background work. Results of a load still in flight are discarded."""
        self._cancel_timer()
        self._generation += 1
        self._send("CLOSE")
        self._settled.set()
