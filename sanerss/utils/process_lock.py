"""
Process Lock Utilities
======================

Keeps two SaneRSS processes from polling into the same known-items file.
Both would otherwise rewrite the file at the end of every cycle and each
would silently drop the other's identities.
"""

import os
import fcntl
import logging
import hashlib
import tempfile
from pathlib import Path
from typing import Optional

from .exceptions import SaneRSSError, ErrorCode

logger = logging.getLogger(__name__)


class ProcessLock:
    """Non-blocking ``flock`` on a file in the lock directory.

    The holder's PID (and, optionally, what it protects) is written into the
    file so a refused process can say who is in the way.
    """

    def __init__(self, lock_name: str, lock_dir: Optional[str] = None, owner_info: str = ""):
        """
        Args:
            lock_name: Lock file name without extension
            lock_dir: Directory for lock files, the system temp dir by default
            owner_info: Free text stored after the PID, e.g. the guarded path
        """
        self.lock_file = Path(lock_dir or tempfile.gettempdir()) / f"{lock_name}.lock"
        self.owner_info = owner_info
        self.lock_fd: Optional[int] = None
        self.acquired = False

    def acquire(self) -> bool:
        """Take the lock.

        Returns:
            False if another process holds it
        """
        if self.acquired:
            return True

        self.lock_file.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(str(self.lock_file), os.O_CREAT | os.O_RDWR, 0o644)

        try:
            fcntl.flock(fd, fcntl.LOCK_EX | fcntl.LOCK_NB)
        except OSError:
            os.close(fd)
            holder = self.get_lock_holder_pid()
            logger.warning(
                f"Lock {self.lock_file} is held"
                + (f" by PID {holder}" if holder else "")
            )
            return False

        os.ftruncate(fd, 0)
        os.write(fd, f"{os.getpid()}\n{self.owner_info}\n".encode())
        os.fsync(fd)

        self.lock_fd = fd
        self.acquired = True
        logger.info(f"Process lock acquired: {self.lock_file}")
        return True

    def release(self) -> None:
        """Drop the lock. Safe to call twice.

        The lock file stays in place: every contender must lock the same inode.
        """
        if not self.acquired or self.lock_fd is None:
            return

        try:
            fcntl.flock(self.lock_fd, fcntl.LOCK_UN)
            os.close(self.lock_fd)
            logger.info(f"Process lock released: {self.lock_file}")
        except OSError as e:
            logger.warning(f"Error releasing lock {self.lock_file}: {e}")
        finally:
            self.lock_fd = None
            self.acquired = False

    def get_lock_holder_pid(self) -> Optional[int]:
        """PID recorded by the current holder, if readable."""
        try:
            first_line = self.lock_file.read_text().splitlines()[0]
            return int(first_line.strip())
        except (OSError, IndexError, ValueError):
            return None

    def __enter__(self) -> "ProcessLock":
        if not self.acquire():
            raise SaneRSSError(
                f"Could not acquire process lock: {self.lock_file}",
                error_code=ErrorCode.PROCESS_LOCKED,
            )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.release()


def lock_for_known_items(known_items_file: Path, lock_dir: Optional[str] = None) -> ProcessLock:
    """Build the process lock guarding one known-items file.

    The lock name is derived from the resolved path so two configurations that
    point at the same file contend for the same lock.
    """
    resolved = str(Path(known_items_file).resolve())
    path_hash = hashlib.sha256(resolved.encode()).hexdigest()[:16]
    return ProcessLock(f"sanerss-{path_hash}", lock_dir=lock_dir, owner_info=resolved)
