"""
In-process registry of import wizard sessions, one per admin user.
"""

from __future__ import annotations

import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Iterator

from .session import ImportSession
from .upload import cleanup_upload

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 60 * 60


@dataclass
class _Entry:
    session: ImportSession
    lock: threading.RLock = field(default_factory=threading.RLock)


class WizardSessionStore:
    """
    Holds each admin's ``ImportSession`` and the lock that serialises its
    mutations.

    Sessions idle for longer than ``ttl_seconds`` are dropped by
    ``expire_idle`` together with their stored upload. Sessions with a
    validation or import call in flight are never expired.
    """

    def __init__(
        self,
        *,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.ttl_seconds = ttl_seconds
        self.clock = clock
        self._entries: dict[int, _Entry] = {}
        self._registry_lock = threading.Lock()

    def __len__(self) -> int:
        with self._registry_lock:
            return len(self._entries)

    def __contains__(self, user_id: object) -> bool:
        with self._registry_lock:
            return user_id in self._entries

    def _new_session(self, user_id: int) -> ImportSession:
        return ImportSession(user_id=user_id, touched_at=self.clock())

    def _entry(self, user_id: int) -> _Entry:
        with self._registry_lock:
            entry = self._entries.get(user_id)
            if entry is None:
                entry = _Entry(session=self._new_session(user_id))
                self._entries[user_id] = entry
            return entry

    def get_or_create(self, user_id: int) -> ImportSession:
        return self._entry(user_id).session

    @contextmanager
    def locked(self, user_id: int) -> Iterator[ImportSession]:
        """Yield the user's session with its lock held."""

        entry = self._entry(user_id)
        with entry.lock:
            entry.session.touch(self.clock())
            yield entry.session

    def reset(self, user_id: int) -> ImportSession:
        """Replace the user's session with a fresh one, deleting its upload."""

        entry = self._entry(user_id)
        with entry.lock:
            _release_upload(entry.session)
            entry.session = self._new_session(user_id)
            return entry.session

    def discard(self, user_id: int) -> None:
        with self._registry_lock:
            entry = self._entries.pop(user_id, None)
        if entry is None:
            return
        with entry.lock:
            _release_upload(entry.session)

    def expire_idle(self, now: float | None = None) -> int:
        """Drop idle sessions and return how many were removed."""

        now = self.clock() if now is None else now
        expired: list[_Entry] = []
        with self._registry_lock:
            for user_id, entry in list(self._entries.items()):
                if now - entry.session.touched_at <= self.ttl_seconds:
                    continue
                if not entry.lock.acquire(blocking=False):
                    continue
                try:
                    if entry.session.stage.is_busy:
                        continue
                    del self._entries[user_id]
                    expired.append(entry)
                finally:
                    entry.lock.release()

        for entry in expired:
            _release_upload(entry.session)
        if expired:
            logger.info("Expired idle import sessions", extra={"expired_count": len(expired)})
        return len(expired)


def _release_upload(session: ImportSession) -> None:
    if session.selected_file is not None:
        cleanup_upload(session.selected_file.path)
