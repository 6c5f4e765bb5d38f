"""
multisig.runtime — execution machinery around the wallet state.

    Host, CallContext, CallResult     : in-memory hosting environment
    ExecutionEngine                   : execute / execute_owner_change / cancel
    ReentrancyGuard                   : scoped non-reentrancy latch
    Immediate, Timelocked             : policy choices (+ ImmediatePolicy, TimelockPolicy)
    EventSink                         : append-only notification log
    GasMeter                          : forwarded-call gas accounting
"""

from __future__ import annotations

from .engine import ExecutionEngine
from .event_sink import EventSink
from .gas import GasMeter
from .guard import ReentrancyGuard
from .host import CallContext, CallResult, Host
from .policy import (Immediate, ImmediatePolicy, Timelocked, TimelockPolicy,
                     build_policy)

__all__ = [
    "Host",
    "CallContext",
    "CallResult",
    "ExecutionEngine",
    "ReentrancyGuard",
    "Immediate",
    "Timelocked",
    "ImmediatePolicy",
    "TimelockPolicy",
    "build_policy",
    "EventSink",
    "GasMeter",
]
