"""Tests for events and the event bus."""

from zkcred.core.events import (
    CredCreated,
    EventBus,
    MemberAdded,
    ProofVerified,
)


class TestEvents:

    def test_name(self):
        assert MemberAdded(cred_id=1, leaf_index=0, leaf=2, root=3).name == "MemberAdded"

    def test_to_dict(self):
        event = MemberAdded(cred_id=1, leaf_index=4, leaf=2**200, root=3)
        assert event.to_dict() == {
            "event": "MemberAdded",
            "cred_id": "1",
            "leaf_index": 4,
            "leaf": str(2**200),
            "root": "3",
        }

    def test_created_to_dict(self):
        data = CredCreated(cred_id=1, depth=20, zero_value=0, uri="u", root_validity_duration=60).to_dict()
        assert data["depth"] == 20
        assert data["root_validity_duration"] == 60
        assert data["zero_value"] == "0"

    def test_proof_verified_default_time(self):
        event = ProofVerified(cred_id=1, root=2, nullifier_hash=3, external_nullifier=4, signal=5)
        assert event.verified_at > 0


class TestEventBus:

    def test_emit_and_history(self):
        bus = EventBus()
        received = []
        bus.subscribe(received.append)

        event = MemberAdded(cred_id=1, leaf_index=0, leaf=2, root=3)
        bus.emit(event)

        assert received == [event]
        assert bus.history == [event]

    def test_unsubscribe(self):
        bus = EventBus()
        received = []
        bus.subscribe(received.append)
        bus.unsubscribe(received.append)
        bus.emit(MemberAdded(cred_id=1, leaf_index=0, leaf=2, root=3))
        assert received == []

    def test_failing_subscriber_is_skipped(self, caplog):
        bus = EventBus()
        received = []

        def broken(event):
            raise RuntimeError("sink down")

        bus.subscribe(broken)
        bus.subscribe(received.append)
        event = MemberAdded(cred_id=1, leaf_index=0, leaf=2, root=3)
        bus.emit(event)

        assert received == [event]
        assert bus.history == [event]
        assert "sink down" in caplog.text

    def test_events_for(self):
        bus = EventBus()
        bus.emit(CredCreated(cred_id=1, depth=20, zero_value=0))
        bus.emit(MemberAdded(cred_id=1, leaf_index=0, leaf=2, root=3))
        bus.emit(MemberAdded(cred_id=2, leaf_index=0, leaf=2, root=3))

        assert len(bus.events_for(1)) == 2
        assert len(bus.events_for(1, MemberAdded)) == 1
        assert bus.events_for(3) == []
