from __future__ import annotations

import logging
from typing import Any, Dict, Optional, Union

from initiator.config import INITIATOR_CONFIG
from initiator.ui.status import StatusSurface
from shared.core.events import InputTriggered
from shared.core.node import BaseNode
from shared.core.scheduler import Scheduler
from shared.core.transport import Transport
from shared.protocol.commands import Command, MsgType

from .heartbeat import HeartbeatMonitor
from .session import OutcomeListener, SessionManager

logger = logging.getLogger(__name__)


class InitiatorNode(BaseNode):
    """Issues open/close commands and watches link health."""

    role = "initiator"

    def __init__(
        self,
        transport: Transport,
        scheduler: Scheduler,
        status: StatusSurface,
        config: Optional[Dict[str, Any]] = None,
        on_outcome: Optional[OutcomeListener] = None,
    ) -> None:
        super().__init__(transport, scheduler)
        self.config = config or INITIATOR_CONFIG
        self.status = status
        self.sessions = SessionManager(transport, scheduler, status, self.config, on_outcome=on_outcome)
        self.heartbeat = HeartbeatMonitor(transport, scheduler, self.sessions, status, self.config)
        self._buttons: Dict[int, Command] = {
            int(self.config["open_button_id"]): Command.OPEN,
            int(self.config["close_button_id"]): Command.CLOSE,
        }
        self.router.register(MsgType.ACK, self.sessions.handle_ack)
        self.router.register(MsgType.DONE, self.sessions.handle_done)
        self.router.register(MsgType.ERR, self.sessions.handle_err)
        self.router.register(MsgType.PONG, self.heartbeat.handle_pong)

    def start(self) -> None:
        if self.config.get("heartbeat_enabled", True):
            self.heartbeat.start()

    def stop(self) -> None:
        self.heartbeat.stop()
        self.sessions.cancel("shutdown")

    def handle_input(self, event: InputTriggered) -> None:
        command = self._buttons.get(event.id)
        if command is None:
            logger.debug("Ignoring input %s", event.id)
            return
        logger.info("Button %s -> %s", event.id, command.value)
        self.issue(command)

    def issue(self, cmd: Union[str, Command]) -> Optional[str]:
        if not self.sessions.busy:
            self.heartbeat.abandon("command takes priority")
        return self.sessions.issue(cmd)

    # Direct calls for debugging, bypassing the input surface.

    def open_valve(self) -> Optional[str]:
        return self.issue(Command.OPEN)

    def close_valve(self) -> Optional[str]:
        return self.issue(Command.CLOSE)


__all__ = ["InitiatorNode"]
