from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Dict, Optional

from initiator.config import INITIATOR_CONFIG
from initiator.ui.status import StatusSurface
from shared.core.scheduler import Scheduler, TimerHandle
from shared.core.transport import Transport
from shared.protocol.errors import ErrorCode
from shared.protocol.messages import Message
from shared.utils.common import elapsed_ms, generate_request_id, ms_to_s

from .session import SessionManager

logger = logging.getLogger(__name__)


class LinkState(StrEnum):
    UNKNOWN = "unknown"
    REACHABLE = "reachable"
    UNREACHABLE = "unreachable"


@dataclass
class HeartbeatSession:
    req: str
    sent_at: float
    timeout_handle: Optional[TimerHandle] = None


class HeartbeatMonitor:
    """Periodic PING/PONG check of the responder, skipped while a command is in flight."""

    def __init__(
        self,
        transport: Transport,
        scheduler: Scheduler,
        sessions: SessionManager,
        status: StatusSurface,
        config: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.transport = transport
        self.scheduler = scheduler
        self.sessions = sessions
        self.status = status
        self.config = config or INITIATOR_CONFIG
        self.responder_id: int = int(self.config["responder_id"])
        self.interval: float = ms_to_s(self.config["heartbeat_interval_ms"])
        self.timeout: float = ms_to_s(self.config["heartbeat_timeout_ms"])
        self.link_indicator_id: int = int(self.config["link_indicator_id"])
        self.link_state = LinkState.UNKNOWN
        self._reported: Optional[LinkState] = None
        self._session: Optional[HeartbeatSession] = None
        self._tick_handle: Optional[TimerHandle] = None

    @property
    def session(self) -> Optional[HeartbeatSession]:
        return self._session

    @property
    def running(self) -> bool:
        return self._tick_handle is not None

    def start(self) -> None:
        if self._tick_handle is None:
            self._tick_handle = self.scheduler.call_later(self.interval, self._on_tick)

    def stop(self) -> None:
        if self._tick_handle is not None:
            self._tick_handle.cancel()
            self._tick_handle = None
        self.abandon("stopped")

    def send_ping(self) -> Optional[str]:
        """Send one PING now unless a command or another ping is active."""
        if self.sessions.busy:
            logger.debug("Heartbeat skipped: command in flight")
            return None
        if self._session is not None:
            logger.debug("Heartbeat skipped: ping req=%s still waiting", self._session.req)
            return None

        req = generate_request_id()
        session = HeartbeatSession(req=req, sent_at=self.scheduler.now())
        self._session = session
        self.link_state = LinkState.UNKNOWN
        self.transport.send(self.responder_id, Message.ping(req).to_frame())
        session.timeout_handle = self.scheduler.call_later(self.timeout, self._on_timeout, req)
        logger.debug("PING req=%s", req)
        return req

    def abandon(self, reason: str) -> None:
        """Drop the active ping without judging the link (command traffic takes priority)."""
        session = self._session
        if session is None:
            return
        if session.timeout_handle is not None:
            session.timeout_handle.cancel()
        self._session = None
        logger.debug("Heartbeat req=%s abandoned: %s", session.req, reason)

    def handle_pong(self, message: Message, source_id: int) -> None:
        session = self._current(message.req)
        if session is None:
            logger.debug("%s: ignoring PONG req=%s", ErrorCode.STALE_REQUEST.name, message.req)
            return
        if session.timeout_handle is not None:
            session.timeout_handle.cancel()
        self._session = None
        logger.debug("PONG req=%s rtt_ms=%s", message.req, elapsed_ms(session.sent_at, self.scheduler.now()))
        self._mark(LinkState.REACHABLE)

    def _on_tick(self) -> None:
        self._tick_handle = self.scheduler.call_later(self.interval, self._on_tick)
        self.send_ping()

    def _on_timeout(self, req: str) -> None:
        session = self._current(req)
        if session is None:
            return
        self._session = None
        logger.warning("Heartbeat req=%s: no PONG within %s ms", req, self.config["heartbeat_timeout_ms"])
        self._mark(LinkState.UNREACHABLE)

    def _current(self, req: str) -> Optional[HeartbeatSession]:
        session = self._session
        if session is None or session.req != req:
            return None
        return session

    def _mark(self, state: LinkState) -> None:
        if state is not self._reported:
            logger.info("Link %s", state.value)
        self._reported = state
        self.link_state = state
        self.status.set_indicator(self.link_indicator_id, state is LinkState.REACHABLE)


__all__ = ["LinkState", "HeartbeatSession", "HeartbeatMonitor"]
