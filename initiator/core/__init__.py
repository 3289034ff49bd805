from .heartbeat import HeartbeatMonitor, HeartbeatSession, LinkState
from .node import InitiatorNode
from .session import CommandOutcome, OutcomeStatus, PendingCommand, SessionError, SessionManager

__all__ = [
    "HeartbeatMonitor",
    "HeartbeatSession",
    "LinkState",
    "InitiatorNode",
    "CommandOutcome",
    "OutcomeStatus",
    "PendingCommand",
    "SessionError",
    "SessionManager",
]
