"""
Unit tests for the runtime primitives: signals, timers, activation keys
and the touch-aware pointer.
"""

import logging

import pytest

from gridsnap.core.host import GrabOp, ModifierMask, PointerState
from gridsnap.core.pointer import ActivationKey, TouchPointer, activation_key_status
from gridsnap.core.signals import EventEmitter, SignalGroup
from gridsnap.core.timers import CONTINUE, STOP, TimerQueue
from gridsnap.tiling.rect import Rect


class TestEventEmitter:

    def test_emit_in_connection_order(self):
        emitter = EventEmitter()
        calls = []
        emitter.connect("evt", lambda v: calls.append(("a", v)))
        emitter.connect("evt", lambda v: calls.append(("b", v)))
        emitter.emit("evt", 1)
        assert calls == [("a", 1), ("b", 1)]

    def test_failing_callback_does_not_stop_others(self, caplog):
        emitter = EventEmitter()
        calls = []

        def boom():
            raise RuntimeError("boom")

        emitter.connect("evt", boom)
        emitter.connect("evt", lambda: calls.append("after"))
        with caplog.at_level(logging.ERROR):
            emitter.emit("evt")
        assert calls == ["after"]
        assert "Error in callback for evt" in caplog.text

    def test_disconnect_is_idempotent(self):
        emitter = EventEmitter()
        calls = []
        conn = emitter.connect("evt", calls.append)
        conn.disconnect()
        conn.disconnect()
        emitter.emit("evt", 1)
        assert calls == []
        assert not conn.connected
        assert emitter.subscriber_count("evt") == 0

    def test_disconnect_while_emitting(self):
        emitter = EventEmitter()
        calls = []
        conns = []

        def once():
            calls.append("once")
            conns[0].disconnect()

        conns.append(emitter.connect("evt", once))
        emitter.emit("evt")
        emitter.emit("evt")
        assert calls == ["once"]


class TestSignalGroup:

    def test_disconnect_one_source(self):
        a, b = EventEmitter(), EventEmitter()
        calls = []
        group = SignalGroup()
        group.connect(a, "evt", lambda: calls.append("a"))
        group.connect(b, "evt", lambda: calls.append("b"))

        group.disconnect(a)
        a.emit("evt")
        b.emit("evt")
        assert calls == ["b"]
        assert len(group) == 1

    def test_disconnect_everything(self):
        a = EventEmitter()
        calls = []
        group = SignalGroup()
        group.connect(a, "evt", lambda: calls.append("a"))
        group.track(object(), a.connect("evt", lambda: calls.append("tracked")))

        group.disconnect()
        a.emit("evt")
        assert calls == []
        assert len(group) == 0


class TestTimerQueue:

    def test_repeats_until_stop(self):
        timers = TimerQueue()
        ticks = []

        def tick():
            ticks.append(1)
            return CONTINUE if len(ticks) < 3 else STOP

        timers.timeout_add(15, tick)
        assert timers.advance(14) == 0
        assert timers.advance(100) == 3
        assert timers.pending == 0

    def test_interleaves_timers(self):
        timers = TimerQueue()
        timers.timeout_add(10, lambda: CONTINUE)
        timers.timeout_add(15, lambda: CONTINUE)
        assert timers.advance(30) == 5

    def test_source_remove(self):
        timers = TimerQueue()
        ticks = []
        handle = timers.timeout_add(10, lambda: ticks.append(1) or CONTINUE)
        timers.advance(10)
        timers.source_remove(handle)
        timers.source_remove(handle)
        timers.advance(50)
        assert ticks == [1]

    def test_remove_from_inside_callback(self):
        timers = TimerQueue()
        handles = []

        def tick():
            timers.source_remove(handles[0])
            return CONTINUE

        handles.append(timers.timeout_add(10, tick))
        assert timers.advance(50) == 1

    def test_failing_callback_is_removed(self, caplog):
        timers = TimerQueue()

        def boom():
            raise RuntimeError("boom")

        timers.timeout_add(10, boom)
        with caplog.at_level(logging.ERROR):
            timers.advance(50)
        assert timers.pending == 0
        assert "removing it" in caplog.text

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            TimerQueue().timeout_add(0, lambda: STOP)


class TestPointer:

    def test_activation_key_status(self):
        assert activation_key_status(0, ActivationKey.NONE)
        assert activation_key_status(ModifierMask.CONTROL, ActivationKey.CTRL)
        assert not activation_key_status(ModifierMask.CONTROL, ActivationKey.ALT)
        assert activation_key_status(ModifierMask.SUPER | ModifierMask.MOD1, ActivationKey.ALT)

    def test_grab_op_is_moving(self):
        assert GrabOp.is_moving(GrabOp.MOVING)
        assert GrabOp.is_moving(GrabOp.MOVING | GrabOp.UNCONSTRAINED)
        assert not GrabOp.is_moving(GrabOp.MOVING | GrabOp.KEYBOARD)
        assert not GrabOp.is_moving(GrabOp.NONE)

    def test_host_pointer_without_touch(self, host):
        host.set_pointer(10, 20, ModifierMask.CONTROL)
        pointer = TouchPointer(host)
        window = host.add_window(Rect(0, 0, 100, 100))
        assert pointer.get_pointer(window) == PointerState(10, 20, ModifierMask.CONTROL)

    def test_touch_pointer_follows_window(self, host):
        host.touch_mode = True
        host.set_pointer(0, 0, ModifierMask.CONTROL)
        window = host.add_window(Rect(0, 0, 100, 100))

        pointer = TouchPointer(host)
        pointer.update_window_position(window.get_frame_rect())
        pointer.on_touch_event(100, 100)
        window.move_frame(True, 10, 20)

        assert pointer.get_pointer(window) == PointerState(110, 120, ModifierMask.CONTROL)

        pointer.reset()
        assert pointer.get_pointer(window) == PointerState(0, 0, ModifierMask.CONTROL)
