"""
store.py - In-Memory Event Stream Catalog

Holds replayed EventStreams under generated UUIDs for the lifetime of the
process. A stream is only stored once its replay has succeeded; completed
streams are read-only, so the lock only guards the catalog itself.
"""

from __future__ import annotations
import threading
import uuid
from typing import Dict, Optional, Sequence

from .events import Event
from .event_stream import EventStream


class EventStreamStore:
    """
    Thread-safe catalog of replayed streams.

    Example:
        store = EventStreamStore()
        stream_id = store.add(events)
        store.get(stream_id).get_state_for_date(date(2026, 3, 1))
    """

    def __init__(self, verbose: bool = False):
        self.verbose = verbose
        self._streams: Dict[uuid.UUID, EventStream] = {}
        self._lock = threading.Lock()

    def add(self, events: Sequence[Event]) -> uuid.UUID:
        """
        Replay events and store the resulting stream.

        The replay runs outside the lock; if it raises, nothing is stored.

        Returns:
            The id of the new stream.
        """
        stream = EventStream(events, verbose=self.verbose)
        stream_id = uuid.uuid4()
        with self._lock:
            self._streams[stream_id] = stream
        return stream_id

    def get(self, stream_id: uuid.UUID) -> Optional[EventStream]:
        with self._lock:
            return self._streams.get(stream_id)

    def __contains__(self, stream_id: object) -> bool:
        with self._lock:
            return stream_id in self._streams

    def __len__(self) -> int:
        with self._lock:
            return len(self._streams)
