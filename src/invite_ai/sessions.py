"""Per-user conversation thread cache.

Maps each user to the remote conversation thread that holds their dialogue
with the assistant.  Threads are created lazily, validated against the
service before reuse, and silently replaced when they have disappeared
upstream.

The mapping lives behind the narrow :class:`ThreadStore` interface so the
concurrency discipline (a single lock, a sharded map, an external cache)
can change without touching the orchestration code.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from invite_ai.assistant import AssistantService

logger = logging.getLogger(__name__)


class ThreadStore(Protocol):
    """Key-value store from user id to thread id."""

    def get(self, user_id: str) -> str | None: ...

    def set(self, user_id: str, thread_id: str) -> None: ...

    def delete(self, user_id: str) -> str | None: ...


class InMemoryThreadStore:
    """Process-local :class:`ThreadStore` guarded by a single lock.

    Writes are rare compared to reads and need no ordering across users,
    so one lock around a ``dict`` is enough.
    """

    def __init__(self) -> None:
        self._threads: dict[str, str] = {}
        self._lock = threading.Lock()

    def get(self, user_id: str) -> str | None:
        with self._lock:
            return self._threads.get(user_id)

    def set(self, user_id: str, thread_id: str) -> None:
        with self._lock:
            self._threads[user_id] = thread_id

    def delete(self, user_id: str) -> str | None:
        """Remove and return the mapping for *user_id*, if any."""
        with self._lock:
            return self._threads.pop(user_id, None)


class SessionManager:
    """Resolve, validate and evict conversation threads per user.

    Concurrent :meth:`resolve` calls for the *same* user may both create a
    thread; the last write wins and the other thread is simply abandoned.

    Args:
        service: The remote assistant service.
        store: Thread store to use.  Defaults to a new
            :class:`InMemoryThreadStore`.
    """

    def __init__(
        self,
        service: AssistantService,
        store: ThreadStore | None = None,
    ) -> None:
        self._service = service
        self._store: ThreadStore = store if store is not None else InMemoryThreadStore()

    @property
    def store(self) -> ThreadStore:
        return self._store

    def resolve(self, user_id: str) -> str:
        """Return a valid thread id for *user_id*, creating one if needed.

        A cached thread that no longer exists upstream is replaced
        without raising.

        Raises:
            ThreadCreationError: If a new thread cannot be created.
        """
        thread_id = self._store.get(user_id)

        if thread_id is not None:
            if self._service.thread_exists(thread_id):
                logger.debug("Using cached thread %s for user %s", thread_id, user_id)
                return thread_id
            logger.warning(
                "Cached thread %s for user %s no longer exists, replacing it",
                thread_id,
                user_id,
            )

        thread_id = self._service.create_thread()
        self._store.set(user_id, thread_id)
        logger.info("Created thread %s for user %s", thread_id, user_id)
        return thread_id

    def evict(self, user_id: str) -> bool:
        """Forget the thread cached for *user_id*.

        Idempotent.  The remote thread itself is left untouched.

        Returns:
            ``True`` if a mapping was removed.
        """
        thread_id = self._store.delete(user_id)
        if thread_id is None:
            return False
        logger.info("Cleared thread %s for user %s from cache", thread_id, user_id)
        return True
