"""Tests for the event bus."""

from skirmish.util.events import EventBus, UnitDowned, UnitMoved


class TestEventBus:
    def test_emit_triggers_handler(self):
        bus = EventBus()
        received = []
        bus.on(UnitDowned, lambda e: received.append(e.unit_id))
        bus.emit(UnitDowned(unit_id="raider-1", team="enemy"))
        assert received == ["raider-1"]

    def test_no_cross_event(self):
        bus = EventBus()
        received = []
        bus.on(UnitDowned, lambda e: received.append("downed"))
        bus.emit(UnitMoved(unit_id="scout", origin=(0, 0), destination=(1, 0), steps=1))
        assert received == []

    def test_multiple_handlers(self):
        bus = EventBus()
        a, b = [], []
        bus.on(UnitDowned, lambda e: a.append(1))
        bus.on(UnitDowned, lambda e: b.append(2))
        bus.emit(UnitDowned(unit_id="x", team="player"))
        assert a == [1] and b == [2]

    def test_off_removes_handler(self):
        bus = EventBus()
        received = []
        handler = lambda e: received.append(1)
        bus.on(UnitDowned, handler)
        bus.off(UnitDowned, handler)
        bus.emit(UnitDowned(unit_id="x", team="player"))
        assert received == []

    def test_handler_may_unsubscribe_itself(self):
        bus = EventBus()
        received = []

        def once(e):
            received.append(e.unit_id)
            bus.off(UnitDowned, once)

        bus.on(UnitDowned, once)
        bus.emit(UnitDowned(unit_id="a", team="enemy"))
        bus.emit(UnitDowned(unit_id="b", team="enemy"))
        assert received == ["a"]

    def test_clear(self):
        bus = EventBus()
        bus.on(UnitDowned, lambda e: None)
        bus.clear()
        # Should not raise
        bus.emit(UnitDowned(unit_id="x", team="player"))
