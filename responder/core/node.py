from __future__ import annotations

import logging
from typing import Any, Dict, Optional

from responder.config import RESPONDER_CONFIG
from shared.core.node import BaseNode
from shared.core.scheduler import Scheduler
from shared.core.transport import Transport
from shared.protocol.commands import MsgType

from .actuator import Actuator
from .handler import CommandHandler

logger = logging.getLogger(__name__)


class ResponderNode(BaseNode):
    """Executes commands on the local actuator and answers link checks."""

    role = "responder"

    def __init__(
        self,
        transport: Transport,
        scheduler: Scheduler,
        actuator: Actuator,
        config: Optional[Dict[str, Any]] = None,
    ) -> None:
        super().__init__(transport, scheduler)
        self.config = config or RESPONDER_CONFIG
        self.handler = CommandHandler(transport, scheduler, actuator, self.config)
        self.router.register(MsgType.CMD, self.handler.handle_cmd)
        self.router.register(MsgType.PING, self.handler.handle_ping)

    def stop(self) -> None:
        self.handler.shutdown()


__all__ = ["ResponderNode"]
