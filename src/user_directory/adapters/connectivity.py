"""Connectivity checks used to short-circuit requests while offline."""

import logging
import time
from dataclasses import dataclass, field
from typing import Protocol

import httpx

_logger = logging.getLogger(__name__)


class ConnectivityChecker(Protocol):
    """Interface for answering whether the network is usable."""

    async def is_connected(self) -> bool:
        """Return True when requests have a chance to succeed."""


class AlwaysConnected(ConnectivityChecker):
    """Checker that never reports the network as down."""

    async def is_connected(self) -> bool:
        """Report the network as available."""
        return True


@dataclass
class HttpxConnectivityChecker(ConnectivityChecker):
    """Probe a URL with a short HEAD request and cache the answer briefly."""

    probe_url: str
    http_client: httpx.AsyncClient
    probe_timeout_seconds: float = 3.0
    ttl_seconds: float = 5.0
    _last_result: bool | None = field(default=None, init=False, repr=False)
    _checked_at: float = field(default=0.0, init=False, repr=False)

    async def is_connected(self) -> bool:
        """Return the cached probe result, probing again once it expires."""
        now = time.monotonic()
        if self._last_result is not None and now - self._checked_at < self.ttl_seconds:
            return self._last_result
        try:
            await self.http_client.head(
                self.probe_url, timeout=self.probe_timeout_seconds
            )
        except httpx.TransportError as exc:
            _logger.info("Connectivity probe failed: %s", exc)
            self._last_result = False
        else:
            self._last_result = True
        self._checked_at = now
        return self._last_result
