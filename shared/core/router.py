from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Dict, Union

from shared.protocol.commands import MsgType
from shared.protocol.messages import Message

logger = logging.getLogger(__name__)

Handler = Callable[[Message, int], None]


class MessageRouter:
    """Maps message kinds to handlers; a failing handler never escapes into the loop."""

    def __init__(self) -> None:
        self._handlers: Dict[str, Handler] = {}

    def register(self, kind: Union[MsgType, str], handler: Handler) -> None:
        self._handlers[str(kind)] = handler

    def dispatch(self, message: Message, source_id: int) -> bool:
        handler = self._handlers.get(message.t.value)
        if handler is None:
            logger.debug("No handler registered for %s (req=%s)", message.t.value, message.req)
            return False
        try:
            handler(message, source_id)
        except Exception as exc:
            logger.exception("Handler error for %s req=%s: %s", message.t.value, message.req, exc)
        return True


__all__ = ["Handler", "MessageRouter"]
