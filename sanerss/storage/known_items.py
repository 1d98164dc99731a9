"""
Known-Item Cache
================

Per-feed bounded record of item identities that were already processed,
accepted or rejected. This is what keeps a rejected item from being evaluated
again on the next poll, so it is persisted across restarts while the visible
feeds are not.

Each feed keeps a set for membership plus a deque holding insertion order.
When the deque grows past capacity the oldest identity is evicted from both.
"""

import asyncio
import json
import os
import tempfile
from collections import deque
from pathlib import Path
from typing import Deque, Dict, List, Optional, Set

from ..utils.exceptions import CacheCorruptionError, PersistenceError, ErrorCode
from ..utils.logging import get_logger_for_component
from ..utils.rwlock import AsyncRWLock


class _FeedWindow:
    """Bounded FIFO set of identities for one feed."""

    __slots__ = ("order", "members")

    def __init__(self):
        self.order: Deque[str] = deque()
        self.members: Set[str] = set()

    def add(self, identity: str, capacity: int) -> bool:
        if identity in self.members:
            return False
        self.order.append(identity)
        self.members.add(identity)
        while len(self.order) > capacity:
            self.members.discard(self.order.popleft())
        return True


class KnownItemCache:
    """Bounded, persistable per-feed record of processed item identities."""

    def __init__(self, capacity: int = 1000, path: Optional[Path] = None):
        """Initialize cache.

        Args:
            capacity: Maximum identities remembered per feed
            path: Default location for ``save``/``load``
        """
        if capacity < 1:
            raise ValueError("capacity must be positive")

        self.capacity = capacity
        self.path = Path(path) if path else None
        self.logger = get_logger_for_component("known_items")

        self._feeds: Dict[str, _FeedWindow] = {}
        self._lock = AsyncRWLock()

    async def is_known(self, feed_name: str, identity: str) -> bool:
        """Whether ``identity`` is currently remembered for ``feed_name``."""
        async with self._lock.read():
            window = self._feeds.get(feed_name)
            return window is not None and identity in window.members

    async def record(self, feed_name: str, identity: str) -> bool:
        """Remember ``identity`` for ``feed_name``.

        Returns:
            True if the identity was new, False if it was already remembered
        """
        async with self._lock.write():
            window = self._feeds.setdefault(feed_name, _FeedWindow())
            return window.add(identity, self.capacity)

    async def count(self, feed_name: str) -> int:
        async with self._lock.read():
            window = self._feeds.get(feed_name)
            return len(window.order) if window else 0

    async def feed_names(self) -> List[str]:
        async with self._lock.read():
            return sorted(self._feeds)

    async def snapshot(self) -> Dict[str, List[str]]:
        """Copy of the full mapping, oldest identity first."""
        async with self._lock.read():
            return {name: list(window.order) for name, window in self._feeds.items()}

    async def save(self, path: Optional[Path] = None) -> Path:
        """Write the cache to disk atomically.

        The mapping is copied under the read lock; the file is written on a
        worker thread after the lock is released.

        Returns:
            The path written to

        Raises:
            PersistenceError: If the file cannot be written
        """
        target = self._resolve_path(path)
        data = await self.snapshot()

        try:
            await asyncio.to_thread(_atomic_write_json, target, data)
        except (OSError, TypeError, ValueError) as e:
            raise PersistenceError(
                f"Failed to write known items to {target}: {e}",
                path=str(target),
                error_code=ErrorCode.STORAGE_WRITE_FAILED,
            ) from e

        self.logger.debug(
            f"Saved known items for {len(data)} feeds to {target}"
        )
        return target

    async def load(self, path: Optional[Path] = None) -> int:
        """Replace the in-memory state with the persisted one.

        A missing or empty file means a fresh start. Sequences longer than the
        configured capacity keep their newest entries.

        Returns:
            Number of identities loaded

        Raises:
            CacheCorruptionError: If the file exists but is not a mapping of
                feed name to a list of identity strings
            PersistenceError: If the file exists but cannot be read
        """
        source = self._resolve_path(path)

        try:
            raw = await asyncio.to_thread(_read_text_if_exists, source)
        except UnicodeDecodeError as e:
            raise CacheCorruptionError(
                f"Known items file {source} is not UTF-8 text: {e}", path=str(source)
            ) from e
        except OSError as e:
            raise PersistenceError(
                f"Failed to read known items from {source}: {e}",
                path=str(source),
                error_code=ErrorCode.STORAGE_READ_FAILED,
            ) from e

        if raw is None or not raw.strip():
            self.logger.info(f"No known items at {source}, starting empty")
            async with self._lock.write():
                self._feeds = {}
            return 0

        try:
            loaded = json.loads(raw)
        except json.JSONDecodeError as e:
            raise CacheCorruptionError(
                f"Known items file {source} is not valid JSON: {e}", path=str(source)
            ) from e

        feeds = self._validate_loaded(loaded, source)

        async with self._lock.write():
            self._feeds = feeds

        total = sum(len(window.order) for window in feeds.values())
        self.logger.info(f"Loaded {total} known items for {len(feeds)} feeds from {source}")
        return total

    def _validate_loaded(self, loaded: object, source: Path) -> Dict[str, _FeedWindow]:
        if not isinstance(loaded, dict):
            raise CacheCorruptionError(
                f"Known items file {source} must contain a JSON object", path=str(source)
            )

        feeds: Dict[str, _FeedWindow] = {}
        for feed_name, identities in loaded.items():
            if not isinstance(identities, list) or not all(
                isinstance(identity, str) for identity in identities
            ):
                raise CacheCorruptionError(
                    f"Known items for feed '{feed_name}' must be a list of strings",
                    path=str(source),
                )

            window = _FeedWindow()
            for identity in identities:
                window.add(identity, self.capacity)
            feeds[feed_name] = window

        return feeds

    def _resolve_path(self, path: Optional[Path]) -> Path:
        target = Path(path) if path else self.path
        if target is None:
            raise ValueError("No known items path configured")
        return target


def _atomic_write_json(path: Path, obj: Dict[str, List[str]]) -> None:
    """Write JSON to a temp file in the target directory, then rename over."""
    directory = path.parent
    directory.mkdir(parents=True, exist_ok=True)

    fd, tmp = tempfile.mkstemp(dir=directory, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(obj, f, ensure_ascii=False)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp, path)
    except BaseException:
        try:
            os.remove(tmp)
        except OSError:
            pass
        raise


def _read_text_if_exists(path: Path) -> Optional[str]:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
