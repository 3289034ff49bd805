from __future__ import annotations

import logging
from typing import List, Optional

from shared.protocol.errors import ErrorCode
from shared.protocol.messages import Message

from .scheduler import Scheduler, TimerHandle
from .transport import Transport

logger = logging.getLogger(__name__)


class BurstTransmitter:
    """Sends N spaced copies of one message; at most one burst at a time.

    The first copy goes out immediately, copy ``k`` after ``k * spacing``
    seconds. A burst requested while another is still emitting is rejected.
    """

    def __init__(self, transport: Transport, scheduler: Scheduler, spacing: float, name: str = "burst") -> None:
        self.transport = transport
        self.scheduler = scheduler
        self.spacing = spacing
        self.name = name
        self._remaining = 0
        self._handles: List[TimerHandle] = []

    @property
    def busy(self) -> bool:
        return self._remaining > 0

    def burst(self, destination_id: int, message: Message, count: int, spacing: Optional[float] = None) -> bool:
        """Start a burst. Returns ``False`` when rejected because one is in progress."""
        if count < 1:
            raise ValueError("burst count must be >= 1")
        if self.busy:
            logger.debug(
                "%s: %s burst of %s req=%s, %s copies still pending",
                self.name,
                ErrorCode.BURST_REJECTED.name,
                message.t.value,
                message.req,
                self._remaining,
            )
            return False

        frame = message.to_frame()
        gap = self.spacing if spacing is None else spacing
        self._remaining = count
        logger.debug("%s: %s x%s req=%s -> %s", self.name, message.t.value, count, message.req, destination_id)
        for k in range(1, count):
            self._handles.append(self.scheduler.call_later(k * gap, self._emit, destination_id, frame))
        self._emit(destination_id, frame)
        return True

    def cancel(self) -> None:
        for handle in self._handles:
            handle.cancel()
        self._handles.clear()
        self._remaining = 0

    def _emit(self, destination_id: int, frame: bytes) -> None:
        if self._remaining <= 0:
            return
        self._remaining -= 1
        if self._remaining == 0:
            self._handles.clear()
        self.transport.send(destination_id, frame)


__all__ = ["BurstTransmitter"]
