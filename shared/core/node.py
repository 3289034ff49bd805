from __future__ import annotations

import logging
from typing import Dict

from shared.protocol.errors import ProtocolError
from shared.protocol.framing import FrameReader
from shared.protocol.messages import Message

from .events import InboundEvent, InputTriggered, RadioFrameReceived
from .router import MessageRouter
from .scheduler import Scheduler
from .transport import Transport

logger = logging.getLogger(__name__)


class BaseNode:
    """Common inbound path: raw bytes -> frames -> messages -> router."""

    role = "node"

    def __init__(self, transport: Transport, scheduler: Scheduler) -> None:
        self.transport = transport
        self.scheduler = scheduler
        self.router = MessageRouter()
        self._readers: Dict[int, FrameReader] = {}
        transport.set_receiver(self.on_receive)

    def on_receive(self, source_id: int, data: bytes) -> None:
        self.handle_event(RadioFrameReceived(source_id=source_id, data=bytes(data)))

    def handle_event(self, event: InboundEvent) -> None:
        if isinstance(event, RadioFrameReceived):
            self._handle_radio(event)
        elif isinstance(event, InputTriggered):
            self.handle_input(event)
        else:
            logger.debug("%s ignoring unsupported event %r", self.role, event)

    def handle_input(self, event: InputTriggered) -> None:
        logger.debug("%s has no inputs, ignoring %s", self.role, event.id)

    def _handle_radio(self, event: RadioFrameReceived) -> None:
        reader = self._readers.setdefault(event.source_id, FrameReader())
        # Payloads of one delivery are handled strictly in wire order.
        for payload in reader.feed(event.data):
            try:
                message = Message.from_payload(payload)
            except ProtocolError as exc:
                logger.debug("%s dropping payload from %s: %s", self.role, event.source_id, exc)
                continue
            logger.debug("%s RX t=%s req=%s from=%s", self.role, message.t.value, message.req, event.source_id)
            self.router.dispatch(message, event.source_id)


__all__ = ["BaseNode"]
