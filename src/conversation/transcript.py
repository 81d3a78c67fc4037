"""Append-only transcript of chat entries."""

import threading
from typing import Callable, Iterator, Union

from src.logging_context import get_session_logger
from src.schemas.chat_schema import ChatEntry, EntryKind

logger = get_session_logger(__name__)

TranscriptListener = Callable[[ChatEntry], None]


class TranscriptStore:
    """
    Ordered log of everything shown to the user.

    Entries are immutable models and are never removed or replaced.
    Appends are serialized so entry order always matches call order,
    and listeners are notified in that same order. A listener that
    raises is logged and skipped; the entry is still recorded.
    """

    def __init__(self) -> None:
        self._entries: list[ChatEntry] = []
        self._listeners: list[TranscriptListener] = []
        self._lock = threading.RLock()

    def append(self, entry: ChatEntry) -> None:
        with self._lock:
            self._entries.append(entry)
            listeners = list(self._listeners)
            for listener in listeners:
                try:
                    listener(entry)
                except Exception:
                    # A broken renderer must not stop later listeners or appends.
                    logger.exception("Transcript listener %r failed on %s entry", listener, entry.kind)
        logger.debug("Transcript append: %s (total %d)", entry.kind, len(self._entries))

    def extend(self, entries: list[ChatEntry]) -> None:
        for entry in entries:
            self.append(entry)

    def subscribe(self, listener: TranscriptListener) -> Callable[[], None]:
        """Register a listener called once per appended entry.

        Returns a function that removes the listener.
        """
        with self._lock:
            self._listeners.append(listener)

        def unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return unsubscribe

    def entries(self) -> tuple[ChatEntry, ...]:
        """Snapshot of all entries in arrival order."""
        with self._lock:
            return tuple(self._entries)

    def of_kind(self, kind: Union[EntryKind, str]) -> list[ChatEntry]:
        kind = EntryKind(kind)
        return [e for e in self.entries() if e.kind == kind]

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[ChatEntry]:
        return iter(self.entries())
