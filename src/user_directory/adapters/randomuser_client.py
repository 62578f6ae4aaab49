"""randomuser.me API client."""

import asyncio
import logging
import time
from dataclasses import dataclass, field
from typing import Protocol

import httpx
from pydantic import ValidationError

from user_directory.adapters.connectivity import AlwaysConnected, ConnectivityChecker
from user_directory.adapters.randomuser_models import RandomUserResponse
from user_directory.domain.errors import (
    DecodeError,
    FetchError,
    FetchTimeout,
    HostUnreachable,
    NetworkUnreachable,
    ServerError,
    UnknownFetchError,
)
from user_directory.domain.users import UserRecord

_logger = logging.getLogger(__name__)


class RandomUserClient(Protocol):
    """Interface for fetching batches of users from the remote source."""

    async def fetch_users(self, count: int) -> list[UserRecord]:
        """Return up to `count` users or raise a `FetchError`."""


@dataclass
class HttpxRandomUserClient(RandomUserClient):
    """HTTPX-backed randomuser.me client."""

    base_url: str
    http_client: httpx.AsyncClient
    nationality: str | None = "es"
    timeout_seconds: float = 15.0
    min_fetch_interval_seconds: float = 2.0
    retry_attempts: int = 1
    retry_delay_seconds: float = 0.5
    connectivity: ConnectivityChecker = field(default_factory=AlwaysConnected)
    _last_fetch_at: float | None = field(default=None, init=False, repr=False)

    @classmethod
    def create(
        cls,
        base_url: str,
        nationality: str | None = "es",
        timeout_seconds: float = 15.0,
        min_fetch_interval_seconds: float = 2.0,
    ) -> "HttpxRandomUserClient":
        """Create a client with a managed httpx session."""
        return cls(
            base_url=base_url,
            http_client=httpx.AsyncClient(
                headers={
                    "Accept": "application/json",
                    "Content-Type": "application/json",
                }
            ),
            nationality=nationality,
            timeout_seconds=timeout_seconds,
            min_fetch_interval_seconds=min_fetch_interval_seconds,
        )

    async def fetch_users(self, count: int) -> list[UserRecord]:
        """Fetch a batch of users, retrying timeouts a bounded number of times."""
        attempt = 0
        while True:
            try:
                return await self._fetch_once(count)
            except FetchTimeout as exc:
                attempt += 1
                if attempt > self.retry_attempts:
                    raise
                _logger.warning(
                    "randomuser fetch timed out (attempt %s/%s): %s",
                    attempt,
                    self.retry_attempts + 1,
                    exc,
                )
                await asyncio.sleep(self.retry_delay_seconds)

    async def _fetch_once(self, count: int) -> list[UserRecord]:
        if not await self.connectivity.is_connected():
            raise NetworkUnreachable()
        await self._respect_min_interval()

        params: dict[str, object] = {"results": count, "seed": int(time.time())}
        if self.nationality:
            params["nat"] = self.nationality
        try:
            response = await self.http_client.get(
                f"{self.base_url.rstrip('/')}/",
                params=params,
                timeout=self.timeout_seconds,
            )
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as exc:
            raise HostUnreachable() from exc
        except httpx.HTTPError as exc:
            raise _classify_transport_error(exc) from exc

        if not response.is_success:
            raise ServerError(response.status_code)
        try:
            payload = RandomUserResponse.model_validate_json(response.content)
        except ValidationError as exc:
            _logger.warning("randomuser payload failed validation: %s", exc)
            raise DecodeError() from exc
        return [user.to_domain() for user in payload.results]

    async def _respect_min_interval(self) -> None:
        """Claim the next request slot before awaiting, then wait for it."""
        now = time.monotonic()
        slot = now
        if self._last_fetch_at is not None:
            slot = max(now, self._last_fetch_at + self.min_fetch_interval_seconds)
        self._last_fetch_at = slot
        if slot > now:
            await asyncio.sleep(slot - now)

    async def close(self) -> None:
        """Close the underlying HTTP session."""
        await self.http_client.aclose()


def _classify_transport_error(exc: httpx.HTTPError) -> FetchError:
    """Map an httpx failure onto the fetch error taxonomy."""
    if isinstance(exc, httpx.TimeoutException):
        return FetchTimeout()
    if isinstance(exc, httpx.NetworkError | httpx.RemoteProtocolError):
        return NetworkUnreachable()
    return UnknownFetchError(str(exc) or exc.__class__.__name__)
