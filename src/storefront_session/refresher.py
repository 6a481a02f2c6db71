"""Proactive session refresh on a fixed interval."""

import asyncio
import contextlib
from collections.abc import AsyncIterator, Awaitable, Callable

import structlog

from .exceptions import ConfigurationError, StorefrontClientError
from .http_client import ApiClient

logger = structlog.get_logger()


class PeriodicRefresher:
    """Keeps the session alive by refreshing it every ``interval`` seconds.

    Ticks keep a fixed cadence. Ticks that pass while a slow refresh is still
    in flight are skipped, never fired back to back.

    A failed refresh is logged and dropped. The next real request that hits a
    401 goes through the client's own refresh-and-retry instead.
    """

    def __init__(self, client: ApiClient, interval: float | None = None) -> None:
        """Initialize the refresher.

        Args:
            client: API client used for the refresh call
            interval: Seconds between refreshes (defaults to config.refresh_interval)
        """
        self.client = client
        self.interval = client.config.refresh_interval if interval is None else interval
        if self.interval <= 0:
            raise ConfigurationError(f"Refresh interval must be positive, got {self.interval}")
        self._task: asyncio.Task[None] | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> Callable[[], Awaitable[None]]:
        """Start the refresh loop and return its disposer.

        Starting an already running refresher is a no-op.
        """
        if not self.is_running:
            self._task = asyncio.create_task(self._refresh_loop())
            logger.info("Periodic session refresh started", interval=self.interval)
        return self.stop

    async def stop(self) -> None:
        """Cancel the refresh loop. No refresh is issued after this returns."""
        task, self._task = self._task, None
        if task is None:
            return
        if not task.done():
            task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
        logger.info("Periodic session refresh stopped")

    @contextlib.asynccontextmanager
    async def running(self) -> AsyncIterator["PeriodicRefresher"]:
        """Run the refresher for the duration of the ``async with`` block."""
        dispose = self.start()
        try:
            yield self
        finally:
            await dispose()

    async def _refresh_loop(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time()
        while True:
            deadline += self.interval
            await asyncio.sleep(max(0.0, deadline - loop.time()))
            try:
                await self.client.refresh_session()
            except StorefrontClientError as e:
                logger.debug("Proactive session refresh failed", error=str(e))
            except Exception as e:
                logger.warning("Proactive session refresh error", error=str(e))

            missed = int((loop.time() - deadline) // self.interval)
            if missed > 0:
                logger.debug("Skipping refresh ticks missed by a slow refresh", missed=missed)
                deadline += missed * self.interval
