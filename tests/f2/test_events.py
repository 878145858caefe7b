"""Tests for platform events and the event bus (F2)."""

import threading
import time
from unittest.mock import MagicMock

import pytest

from learnplatform.core.errors import InsufficientBalanceError
from learnplatform.core.events import EventBus, PlatformEvent, PlatformEventType
from learnplatform.core.ledger import PLATFORM_ISSUER
from learnplatform.core.platform import LearnPlatform


@pytest.fixture
def recorded(platform):
    """Events published from now on."""
    events = []
    platform.subscribe(events.append)
    return events


class TestEventBus:
    """Tests for the bus itself."""

    def test_publish_assigns_sequence(self):
        bus = EventBus()
        first = bus.publish(PlatformEvent(PlatformEventType.TRANSFER))
        second = bus.publish(PlatformEvent(PlatformEventType.TRANSFER))
        assert (first.seq, second.seq) == (1, 2)

    def test_history_since(self):
        bus = EventBus()
        for _ in range(3):
            bus.publish(PlatformEvent(PlatformEventType.TOKENS_MINTED))
        assert [e.seq for e in bus.history(since_seq=1)] == [2, 3]

    def test_history_is_bounded(self):
        bus = EventBus(history_size=2)
        for _ in range(5):
            bus.publish(PlatformEvent(PlatformEventType.TOKENS_MINTED))
        assert [e.seq for e in bus.history()] == [4, 5]

    def test_subscriber_receives_stamped_event(self):
        bus = EventBus()
        callback = MagicMock()
        bus.subscribe(callback)
        event = bus.publish(PlatformEvent(PlatformEventType.SKILL_CREATED, timestamp=5))
        callback.assert_called_once_with(event)
        assert event.timestamp == 5

    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        unsubscribe = bus.subscribe(received.append)
        bus.publish(PlatformEvent(PlatformEventType.TRANSFER))
        unsubscribe()
        bus.publish(PlatformEvent(PlatformEventType.TRANSFER))
        assert len(received) == 1
        assert bus.subscriber_count == 0

    def test_failing_subscriber_does_not_stop_delivery(self):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("listener down")

        bus.subscribe(broken)
        bus.subscribe(received.append)
        bus.publish(PlatformEvent(PlatformEventType.TRANSFER))
        assert len(received) == 1

    def test_concerns_is_case_insensitive(self):
        event = PlatformEvent(PlatformEventType.TRANSFER, addresses=("0xAbC",))
        assert event.concerns("0xabc")
        assert not event.concerns("0xdef")

    def test_to_dict(self):
        event = PlatformEvent(
            PlatformEventType.TRANSFER,
            data={"amount": 5},
            addresses=("0xA", "0xB"),
            seq=3,
            timestamp=10,
        )
        assert event.to_dict() == {
            "seq": 3,
            "event_type": "Transfer",
            "timestamp": 10,
            "addresses": ["0xA", "0xB"],
            "data": {"amount": 5},
        }

    def test_record_defers_delivery_until_flush(self):
        bus = EventBus()
        callback = MagicMock()
        bus.subscribe(callback)
        event = bus.record(PlatformEvent(PlatformEventType.TRANSFER))
        assert event.seq == 1
        assert bus.history() == [event]
        callback.assert_not_called()
        bus.flush()
        callback.assert_called_once_with(event)

    def test_concurrent_publishers_get_unique_ordered_seqs(self):
        bus = EventBus(history_size=2000)
        received = []
        bus.subscribe(lambda event: received.append(event.seq))

        def publish_many():
            for _ in range(200):
                bus.publish(PlatformEvent(PlatformEventType.TOKENS_MINTED))

        workers = [threading.Thread(target=publish_many) for _ in range(8)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join()

        assert [e.seq for e in bus.history()] == list(range(1, 1601))
        assert received == list(range(1, 1601))


class TestPlatformEvents:
    """Tests for events emitted by platform operations."""

    def test_register_emits_user_registered(self):
        platform = LearnPlatform()
        events = []
        platform.subscribe(events.append)
        platform.register_user("0xD", "dave", is_instructor=True)
        assert len(events) == 1
        assert events[0].event_type == PlatformEventType.USER_REGISTERED
        assert events[0].data == {"address": "0xD", "username": "dave", "is_instructor": True}

    def test_session_started_payload(self, platform, recorded):
        platform.start_session("0xB", 1)
        assert len(recorded) == 1
        event = recorded[0]
        assert event.event_type == PlatformEventType.SESSION_STARTED
        assert event.data["session_id"] == 1
        assert event.data["escrowed_amount"] == 100
        assert event.concerns("0xA") and event.concerns("0xB")

    def test_completion_emits_completed_then_assessment(self, platform, recorded):
        platform.start_session("0xB", 1)
        recorded.clear()
        platform.complete_session(1, 90, 400)
        assert [e.event_type for e in recorded] == [
            PlatformEventType.SESSION_COMPLETED,
            PlatformEventType.ASSESSMENT_SUBMITTED,
        ]
        completed, assessed = recorded
        assert completed.data["rating"] == 400
        assert completed.data["tokens_earned"] == 45
        assert assessed.data == {"session_id": 1, "score": 90, "passed": True}

    def test_cancel_emits_refund(self, platform, recorded):
        platform.start_session("0xB", 1)
        platform.cancel_session(1, by="0xA")
        event = recorded[-1]
        assert event.event_type == PlatformEventType.SESSION_CANCELLED
        assert event.data["refund"] == 100
        assert event.data["cancelled_by"] == "0xA"

    def test_transfer_and_mint_events(self, platform, recorded):
        platform.transfer("0xB", "0xC", 10)
        platform.mint("0xC", 5, caller=PLATFORM_ISSUER)
        assert [e.event_type for e in recorded] == [
            PlatformEventType.TRANSFER,
            PlatformEventType.TOKENS_MINTED,
        ]

    def test_failed_operation_emits_nothing(self, platform, recorded):
        with pytest.raises(InsufficientBalanceError):
            platform.transfer("0xB", "0xC", 10_000)
        assert recorded == []

    def test_failing_listener_does_not_undo_commit(self, platform):
        def broken(event):
            raise RuntimeError("listener down")

        platform.subscribe(broken)
        platform.start_session("0xB", 1)
        assert platform.get_session(1).is_active
        assert platform.balance_of("0xB") == 50

    def test_slow_listener_sees_events_in_commit_order(self, platform):
        """An operation committed while an earlier event is still being
        delivered is delivered after it, with a later seq."""
        since = platform.events.history()[-1].seq
        received = []
        delivering = threading.Event()

        def slow_listener(event):
            if event.event_type == PlatformEventType.SESSION_STARTED:
                delivering.set()
                time.sleep(0.2)
            received.append(event.event_type)

        platform.subscribe(slow_listener)
        worker = threading.Thread(target=platform.start_session, args=("0xB", 1))
        worker.start()
        assert delivering.wait(timeout=5)
        platform.complete_session(1, 90, 400)
        worker.join(timeout=5)

        expected = [
            PlatformEventType.SESSION_STARTED,
            PlatformEventType.SESSION_COMPLETED,
            PlatformEventType.ASSESSMENT_SUBMITTED,
        ]
        history = platform.events.history(since_seq=since)
        assert [e.event_type for e in history] == expected
        assert [e.seq for e in history] == list(range(since + 1, since + 4))
        assert received == expected
