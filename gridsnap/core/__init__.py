"""
gridsnap.core - Host contracts and runtime primitives.

This package contains:
    - host    : Protocols of the host desktop environment, enums, Monitor
    - signals : Connection, EventEmitter and SignalGroup
    - timers  : TimerQueue, the repeating-timer scheduler
    - pointer : ActivationKey and the touch-aware pointer
"""

from gridsnap.core.host import (
    GrabOp,
    Host,
    HostEvent,
    MaximizeFlags,
    ModifierMask,
    Monitor,
    PointerState,
    WindowHandle,
    WindowType,
    Workspace,
)
from gridsnap.core.signals import Connection, EventEmitter, SignalGroup
from gridsnap.core.timers import CONTINUE, STOP, TimerQueue
from gridsnap.core.pointer import ActivationKey, TouchPointer

__all__ = [
    "GrabOp", "Host", "HostEvent", "MaximizeFlags", "ModifierMask",
    "Monitor", "PointerState", "WindowHandle", "WindowType", "Workspace",
    "Connection", "EventEmitter", "SignalGroup",
    "CONTINUE", "STOP", "TimerQueue",
    "ActivationKey", "TouchPointer",
]
