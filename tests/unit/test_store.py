"""
test_store.py - Unit tests for the in-memory EventStreamStore
"""

import threading
import uuid
import pytest
from datetime import date

from loansplitter import (
    AccountTransaction,
    AdvancePaymentEvent,
    EventStream,
    EventStreamStore,
    UnknownParticipant,
)

from tests.helpers import contract_events


class TestEventStreamStore:

    def test_add_and_get(self):
        store = EventStreamStore()
        stream_id = store.add(contract_events(term=12))

        assert isinstance(stream_id, uuid.UUID)
        assert stream_id in store
        assert len(store) == 1
        assert isinstance(store.get(stream_id), EventStream)

    def test_unknown_id(self):
        store = EventStreamStore()
        assert store.get(uuid.uuid4()) is None
        assert uuid.uuid4() not in store

    def test_failed_replay_is_not_stored(self):
        store = EventStreamStore()
        events = contract_events(term=12) + [
            AdvancePaymentEvent(date(2025, 11, 5), "apartLoan", AccountTransaction(100, "C")),
        ]
        with pytest.raises(UnknownParticipant):
            store.add(events)
        assert len(store) == 0

    def test_each_add_gets_a_new_id(self):
        store = EventStreamStore()
        events = contract_events(term=12)
        assert store.add(events) != store.add(events)
        assert len(store) == 2

    def test_concurrent_adds(self):
        store = EventStreamStore()
        events = contract_events(term=6)
        ids = []
        lock = threading.Lock()

        def worker():
            stream_id = store.add(events)
            with lock:
                ids.append(stream_id)

        threads = [threading.Thread(target=worker) for _ in range(8)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(store) == 8
        assert len(set(ids)) == 8
        assert all(stream_id in store for stream_id in ids)
