"""
Tests for the GraphEvents observer bus.
"""

import logging

from sketchpad.notifications import EVENT_NAMES, GraphEvents, SelectionChange


def test_callbacks_run_in_registration_order():
    events = GraphEvents()
    calls = []
    events.on('node_moved', lambda data: calls.append(('first', data)))
    events.on('node_moved', lambda data: calls.append(('second', data)))

    events.emit('node_moved', 7)

    assert calls == [('first', 7), ('second', 7)]


def test_off_removes_callback():
    events = GraphEvents()
    calls = []
    events.on('graph_changed', calls.append)
    events.off('graph_changed', calls.append)
    events.emit('graph_changed', 'x')
    assert calls == []


def test_off_unknown_callback_is_harmless():
    GraphEvents().off('graph_changed', print)


def test_failing_callback_does_not_stop_others(caplog):
    events = GraphEvents()
    calls = []

    def broken(_data):
        raise RuntimeError("boom")

    events.on('layout_changed', broken)
    events.on('layout_changed', calls.append)

    with caplog.at_level(logging.ERROR):
        events.emit('layout_changed', (1, 2))

    assert calls == [(1, 2)]
    assert "Error in callback for layout_changed: boom" in caplog.text


def test_unknown_event_names_are_rejected(caplog):
    events = GraphEvents()
    calls = []
    with caplog.at_level(logging.WARNING):
        events.on('node_exploded', calls.append)
        events.emit('node_exploded', None)
    assert calls == []
    assert "unknown event 'node_exploded'" in caplog.text


def test_every_declared_event_can_be_subscribed():
    events = GraphEvents()
    seen = []
    for name in EVENT_NAMES:
        events.on(name, lambda data, name=name: seen.append(name))
        events.emit(name)
    assert seen == list(EVENT_NAMES)


def test_selection_change_cleared():
    assert SelectionChange().cleared
    assert not SelectionChange(kind='node', element_id=1, degree=0).cleared
