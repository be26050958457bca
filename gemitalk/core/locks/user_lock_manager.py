"""User lock manager for serializing per-user read-modify-write operations"""

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime

logger = logging.getLogger(__name__)


class LockTimeoutError(TimeoutError):
    """Raised when a user lock cannot be acquired in time"""


@dataclass
class LockInfo:
    """Information about a user lock"""

    locked_at: datetime
    operation: str
    lock_id: str
    depth: int = 1


class UserLockManager:
    """Manages one reentrant lock per user so updates to a profile never interleave"""

    def __init__(self, lock_timeout_seconds: float = 30.0):
        """
        Initialize the user lock manager

        Args:
            lock_timeout_seconds: How long acquire waits before giving up
        """
        self._locks: dict[str, threading.RLock] = {}
        self._lock_info: dict[str, LockInfo] = {}
        self._registry_lock = threading.Lock()
        self._lock_timeout = lock_timeout_seconds

    def _get_user_lock(self, user_id: str) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(user_id)
            if lock is None:
                lock = threading.RLock()
                self._locks[user_id] = lock
            return lock

    def is_locked(self, user_id: str) -> bool:
        """
        Check if user is currently locked

        Args:
            user_id: Learner ID

        Returns:
            True if user is locked, False otherwise
        """
        with self._registry_lock:
            return user_id in self._lock_info

    def get_lock_info(self, user_id: str) -> LockInfo | None:
        """Get lock information for user"""
        with self._registry_lock:
            return self._lock_info.get(user_id)

    def acquire_lock(
        self, user_id: str, operation: str, timeout: float | None = None
    ) -> bool:
        """
        Acquire lock for user, waiting up to the timeout

        Args:
            user_id: Learner ID
            operation: Name of operation being locked
            timeout: Seconds to wait (defaults to the manager timeout)

        Returns:
            True if lock acquired, False on timeout
        """
        lock = self._get_user_lock(user_id)
        wait = self._lock_timeout if timeout is None else timeout

        if not lock.acquire(timeout=wait):
            current = self.get_lock_info(user_id)
            logger.warning(
                f"Timed out waiting for lock on user {user_id} for {operation}, "
                f"held by: {current.operation if current else 'unknown'}"
            )
            return False

        with self._registry_lock:
            info = self._lock_info.get(user_id)
            if info is None:
                self._lock_info[user_id] = LockInfo(
                    locked_at=datetime.now(),
                    operation=operation,
                    lock_id=f"{user_id}_{operation}_{datetime.now().timestamp()}",
                )
            else:
                info.depth += 1

        logger.debug(f"Acquired lock for user {user_id}, operation: {operation}")
        return True

    def release_lock(self, user_id: str) -> bool:
        """
        Release lock for user

        Args:
            user_id: Learner ID

        Returns:
            True if lock was released, False if user was not locked
        """
        with self._registry_lock:
            info = self._lock_info.get(user_id)
            lock = self._locks.get(user_id)
            if info is None or lock is None:
                logger.warning(
                    f"Attempted to release non-existent lock for user {user_id}"
                )
                return False

            info.depth -= 1
            if info.depth == 0:
                del self._lock_info[user_id]

        lock.release()
        logger.debug(f"Released lock for user {user_id}, operation: {info.operation}")
        return True

    @contextmanager
    def user_lock(self, user_id: str, operation: str):
        """Hold the user's lock for the duration of the block"""
        if not self.acquire_lock(user_id, operation):
            raise LockTimeoutError(
                f"Could not lock user {user_id} for {operation} "
                f"within {self._lock_timeout}s"
            )
        try:
            yield
        finally:
            self.release_lock(user_id)

    def get_active_locks_count(self) -> int:
        """Get number of currently active locks"""
        with self._registry_lock:
            return len(self._lock_info)

    def get_all_locked_users(self) -> dict[str, LockInfo]:
        """Get all currently locked users"""
        with self._registry_lock:
            return self._lock_info.copy()
