"""
Feed Filter Service
===================

Wires the components together and owns the process lifecycle: single-instance
lock, known-item restore, priming, HTTP server, background poller, signal
handling and the final flush of the known items on shutdown.
"""

import asyncio
import contextlib
import signal
from typing import List, Optional

from aiohttp import web

from ..ai.providers import DecisionProvider, create_provider
from ..config.settings import SaneRSSSettings
from ..ingestion.feed_fetcher import FeedFetcher
from ..processing.decision_gate import DecisionGate
from ..scheduler.poller import FeedPoller, PollCycleResult
from ..server.app import create_app
from ..storage.feed_store import FeedStore
from ..storage.known_items import KnownItemCache
from ..utils.exceptions import ErrorCode, PersistenceError, SaneRSSError
from ..utils.logging import get_logger_for_component
from ..utils.process_lock import ProcessLock, lock_for_known_items


class FeedFilterService:
    """Long-running filtered feed service."""

    def __init__(
        self,
        settings: SaneRSSSettings,
        fetcher: Optional[FeedFetcher] = None,
        provider: Optional[DecisionProvider] = None,
        process_lock: Optional[ProcessLock] = None,
    ):
        """Initialize service components.

        Args:
            settings: Loaded application settings
            fetcher: Feed fetcher (built from settings if None)
            provider: AI provider (built from settings if None)
            process_lock: Single-instance lock (derived from the known items path if None)
        """
        self.settings = settings
        self.logger = get_logger_for_component("service")

        self.fetcher = fetcher or FeedFetcher(timeout=settings.limits.request_timeout)
        if provider is None:
            provider = create_provider(settings.ai, timeout=settings.limits.ai_timeout)
        self.provider = provider

        self.feed_store = FeedStore(settings.polling.max_items_per_feed)
        self.known_items = KnownItemCache(
            capacity=settings.polling.known_items_capacity,
            path=settings.known_items_file,
        )
        self.decision_gate = DecisionGate(settings, provider)
        self.poller = FeedPoller(
            settings,
            self.fetcher,
            self.decision_gate,
            self.feed_store,
            self.known_items,
        )
        self.process_lock = process_lock or lock_for_known_items(settings.known_items_file)

        self.shutdown_event = asyncio.Event()
        self._runner: Optional[web.AppRunner] = None
        self._poll_task: Optional[asyncio.Task] = None
        self._known_items_loaded = False
        self._signals: List[signal.Signals] = []

    async def run(self) -> None:
        """Serve until a shutdown is requested.

        Signal handlers go in first so a shutdown during restore or priming
        still reaches the final flush.

        Raises:
            SaneRSSError: If another instance holds the lock
            CacheCorruptionError: If the persisted known items are unreadable
        """
        self._acquire_lock()
        try:
            self._install_signal_handlers()

            await self.known_items.load()
            self._known_items_loaded = True

            if self.settings.polling.prime_on_startup:
                self.logger.info(f"Priming {len(self.settings.feeds)} feeds")
                if not await self._until_shutdown(self.poller.prime()):
                    self.logger.info("Shutdown requested during priming")
                    return

            await self._start_server()

            self._poll_task = asyncio.create_task(self.poller.run(self.shutdown_event))
            await self.shutdown_event.wait()
            self.logger.info("Shutdown requested")
        finally:
            await self._shutdown()

    async def poll_once(self) -> PollCycleResult:
        """Load known items, run a single poll cycle and persist."""
        self._acquire_lock()
        try:
            await self.known_items.load()
            return await self.poller.poll_cycle()
        finally:
            await self.fetcher.close()
            self.process_lock.release()

    def request_shutdown(self) -> None:
        self.shutdown_event.set()

    def _acquire_lock(self) -> None:
        if not self.process_lock.acquire():
            pid = self.process_lock.get_lock_holder_pid()
            raise SaneRSSError(
                f"Another instance is already using {self.settings.known_items_file}"
                + (f" (PID {pid})" if pid else ""),
                error_code=ErrorCode.PROCESS_LOCKED,
                recoverable=False,
            )

    async def _until_shutdown(self, coro) -> bool:
        """Run ``coro`` unless a shutdown is requested first.

        Returns:
            True if ``coro`` finished, False if it was cancelled for shutdown
        """
        work = asyncio.create_task(coro)
        stop = asyncio.create_task(self.shutdown_event.wait())
        try:
            await asyncio.wait({work, stop}, return_when=asyncio.FIRST_COMPLETED)
        finally:
            stop.cancel()
            if not work.done():
                work.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await work

        return not work.cancelled()

    async def _start_server(self) -> None:
        host = self.settings.server.host
        port = self.settings.server.port

        self._runner = web.AppRunner(create_app(self.feed_store))
        await self._runner.setup()
        site = web.TCPSite(self._runner, host, port)
        await site.start()

        self.logger.info(f"Serving filtered feeds on http://{host}:{port}/feeds")

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()

        def _on_signal(signame: str) -> None:
            self.logger.warning(f"Received {signame}, shutting down")
            self.request_shutdown()

        for sig in (signal.SIGINT, signal.SIGTERM):
            with contextlib.suppress(NotImplementedError):  # Not supported on Windows
                loop.add_signal_handler(sig, _on_signal, sig.name)
                self._signals.append(sig)

    def _remove_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        while self._signals:
            loop.remove_signal_handler(self._signals.pop())

    async def _shutdown(self) -> None:
        self.shutdown_event.set()

        if self._poll_task is not None:
            self._poll_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._poll_task
            self._poll_task = None

        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None

        await self.fetcher.close()

        # Never overwrite a file that failed to load
        if self._known_items_loaded:
            try:
                await self.known_items.save()
            except PersistenceError as e:
                self.logger.error(f"Failed to flush known items on shutdown: {e}")

        self.process_lock.release()
        self._remove_signal_handlers()
        self.logger.info("Service stopped")
