"""User synchronization: cache, local store and remote source reconciliation."""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import Protocol

from user_directory.adapters.randomuser_client import RandomUserClient
from user_directory.domain.errors import FetchError, StorageError
from user_directory.domain.users import UserRecord

_logger = logging.getLogger(__name__)

MAX_RETRIES = 3
LOAD_THRESHOLD = 8
SUFFICIENCY_DIVISOR = 2


class UserStore(Protocol):
    """Persistence interface for user records."""

    async def upsert_if_absent(self, users: list[UserRecord]) -> None:
        """Insert users whose id is not stored yet; existing ids are kept."""

    async def fetch_all(self, order_by: str | None = None) -> list[UserRecord]:
        """Return every stored user, optionally ordered by a field."""

    async def delete_by_id(self, user_id: str) -> None:
        """Delete a user, raising `UserNotFound` if it does not exist."""

    async def max_order(self) -> int:
        """Return the highest stored `order`, or -1 when nothing is stored."""


@dataclass
class UserSyncRepository:
    """Serve users from memory or storage and keep them fresh in the background.

    All state is owned by a single event loop. Background refreshes are tracked
    by one task handle and a generation counter; a refresh whose generation is
    no longer current leaves the cache alone.
    """

    client: RandomUserClient
    store: UserStore
    max_retries: int = MAX_RETRIES
    load_threshold: int = LOAD_THRESHOLD
    last_requested_count: int = 20
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep
    is_first_load: bool = field(default=True, init=False)
    retry_count: int = field(default=0, init=False)
    _cache: list[UserRecord] = field(default_factory=list, init=False, repr=False)
    _background_task: "asyncio.Task[None] | None" = field(
        default=None, init=False, repr=False
    )
    _refresh_generation: int = field(default=0, init=False, repr=False)
    _pending_saves: "set[asyncio.Task[None]]" = field(
        default_factory=set, init=False, repr=False
    )

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be zero or positive")
        if self.load_threshold < 0:
            raise ValueError("load_threshold must be zero or positive")

    @property
    def cached_users(self) -> tuple[UserRecord, ...]:
        """Snapshot of the in-memory cache."""
        return tuple(self._cache)

    async def get_users(self, count: int) -> list[UserRecord]:
        """Return users for the first screen, preferring memory, then storage."""
        self.last_requested_count = count
        threshold = count // SUFFICIENCY_DIVISOR
        try:
            if self._cache and len(self._cache) >= threshold:
                self._start_background_refresh(count)
                return list(self._cache)

            stored = await self.store.fetch_all(order_by="order")
            if stored and len(stored) >= threshold:
                self._cache = list(stored)
                self._start_background_refresh(count)
                return list(stored)

            return await self._fetch_and_store(count)
        finally:
            self.is_first_load = False

    async def load_more(self, count: int) -> list[UserRecord]:
        """Fetch the next page from the remote source.

        The whole fetched batch is returned, including records that were
        already cached; only the new ones are cached and persisted.
        """
        return await self._fetch_and_store(count)

    async def reload(self) -> list[UserRecord]:
        """Replay the last `get_users` request."""
        return await self.get_users(self.last_requested_count)

    async def search(self, query: str) -> list[UserRecord]:
        """Search the cache, falling back to storage when nothing matches."""
        results = [user for user in self._cache if user.matches(query)]
        if results:
            return results
        stored = await self.store.fetch_all(order_by="order")
        return [user for user in stored if user.matches(query)]

    async def delete_user(self, user_id: str) -> None:
        """Delete a user from storage, then from the cache."""
        await self.store.delete_by_id(user_id)
        self._cache = [user for user in self._cache if user.id != user_id]

    async def get_saved_users(self) -> list[UserRecord]:
        """Return every persisted user in fetch order."""
        return await self.store.fetch_all(order_by="order")

    def should_load_more(self, current_index: int, total_count: int) -> bool:
        """Whether the consumer is close enough to the end to paginate."""
        return current_index >= total_count - self.load_threshold

    async def wait_for_background_work(self) -> None:
        """Wait for the current background refresh and any pending saves."""
        task = self._background_task
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)
        if self._pending_saves:
            await asyncio.gather(*list(self._pending_saves), return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel the background refresh and flush pending saves."""
        self._refresh_generation += 1
        task = self._background_task
        self._background_task = None
        if task is not None and not task.done():
            task.cancel()
            await asyncio.gather(task, return_exceptions=True)
        if self._pending_saves:
            await asyncio.gather(*list(self._pending_saves), return_exceptions=True)

    def _start_background_refresh(self, count: int) -> None:
        previous = self._background_task
        if previous is not None and not previous.done():
            previous.cancel()
        self._refresh_generation += 1
        generation = self._refresh_generation
        self._background_task = asyncio.create_task(
            self._background_refresh(count, generation)
        )

    async def _background_refresh(self, count: int, generation: int) -> None:
        try:
            await self._fetch_and_store(
                count, is_current=lambda: generation == self._refresh_generation
            )
        except FetchError as exc:
            _logger.warning("Background refresh failed: %s", exc)
        except Exception:
            _logger.exception("Background refresh crashed")

    async def _fetch_and_store(
        self, count: int, is_current: Callable[[], bool] | None = None
    ) -> list[UserRecord]:
        """Fetch a batch, retrying connectivity failures with backoff."""
        retries = 0
        for attempt in range(self.max_retries + 1):
            try:
                fetched = await self.client.fetch_users(count)
            except FetchError as exc:
                if not exc.retryable or attempt == self.max_retries:
                    raise
                retries += 1
                self.retry_count = retries
                delay = self._retry_delay(retries)
                _logger.warning(
                    "Fetching %s users failed (attempt %s/%s): %s. Retrying in %.1fs",
                    count,
                    attempt + 1,
                    self.max_retries + 1,
                    exc,
                    delay,
                )
                await self.sleep(delay)
                continue
            self.retry_count = 0
            return await self._merge_batch(fetched, is_current)

        raise RuntimeError("Unexpected retry loop exit")

    def _retry_delay(self, retry_count: int) -> float:
        if self.is_first_load:
            return 1.0
        return float(2**retry_count)

    async def _merge_batch(
        self,
        fetched: list[UserRecord],
        is_current: Callable[[], bool] | None,
    ) -> list[UserRecord]:
        stored_max = await self._stored_max_order()
        # No awaits below this line: the cache cannot change underneath us.
        baseline = max([stored_max, *(user.order for user in self._cache)])
        batch = [
            user.with_order(baseline + 1 + index) for index, user in enumerate(fetched)
        ]
        if is_current is not None and not is_current():
            _logger.info("Discarding %s users from a superseded refresh", len(batch))
            return batch

        known_ids = {user.id for user in self._cache}
        unique: list[UserRecord] = []
        for user in batch:
            if user.id in known_ids:
                continue
            known_ids.add(user.id)
            unique.append(user)

        if unique:
            self._cache.extend(unique)
            self._schedule_save(unique)
        return batch

    async def _stored_max_order(self) -> int:
        try:
            return await self.store.max_order()
        except StorageError as exc:
            _logger.warning("Could not read stored order baseline: %s", exc)
            return -1

    def _schedule_save(self, users: list[UserRecord]) -> None:
        task = asyncio.create_task(self._save(users))
        self._pending_saves.add(task)
        task.add_done_callback(self._pending_saves.discard)

    async def _save(self, users: list[UserRecord]) -> None:
        try:
            await self.store.upsert_if_absent(users)
        except StorageError:
            _logger.exception("Failed to persist %s users", len(users))
