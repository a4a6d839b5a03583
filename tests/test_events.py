import pytest

from wavesummarylib.errors import ValidationError
from wavesummarylib.events import ALL_EVENTS, EventBus, emit


def test_handlers_receive_event_data_in_order():
    bus = EventBus()
    calls = []
    bus.subscribe("file.write", lambda **d: calls.append(("first", d)))
    bus.subscribe("file.write", lambda **d: calls.append(("second", d)))
    bus.emit("file.write", path="a.dat", format="dat", version=1)
    assert calls == [
        ("first", {"path": "a.dat", "format": "dat", "version": 1}),
        ("second", {"path": "a.dat", "format": "dat", "version": 1}),
    ]


def test_decorator_subscribes():
    bus = EventBus()
    seen = []

    @bus.on("generator.done")
    def on_done(points):
        seen.append(points)

    bus.emit("generator.done", points=[4])
    assert seen == [[4]]
    assert callable(on_done)


def test_catch_all_receives_event_type():
    bus = EventBus()
    seen = []
    bus.subscribe(ALL_EVENTS, lambda event_type, **d: seen.append(event_type))
    bus.emit("generator.done", points=[1])
    bus.emit("file.write", path="x", format="txt", version=2)
    assert seen == ["generator.done", "file.write"]


def test_unsubscribe():
    bus = EventBus()
    calls = []
    handler = bus.subscribe("generator.done", lambda **d: calls.append(d))
    bus.unsubscribe("generator.done", handler)
    bus.unsubscribe("generator.done", handler)
    bus.emit("generator.done", points=[])
    assert calls == []


def test_unknown_event_type():
    bus = EventBus()
    with pytest.raises(ValidationError):
        bus.subscribe("file.delete", lambda **d: None)
    with pytest.raises(ValidationError):
        bus.emit("generator.start")


def test_emit_without_bus_is_a_no_op():
    emit(None, "file.write", path="x", format="dat", version=1)
