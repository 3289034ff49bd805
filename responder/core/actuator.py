from __future__ import annotations

import logging
from typing import Optional, Protocol

from shared.core.scheduler import Scheduler, TimerHandle
from shared.protocol.commands import CoverState
from shared.protocol.errors import ErrorCode, ProtocolError

logger = logging.getLogger(__name__)


class ActuatorError(ProtocolError):
    """The actuator rejected an open/close call or could not report its state."""

    def __init__(self, message: str = "", req: Optional[str] = None) -> None:
        super().__init__(ErrorCode.ACTION_FAILED, message=message, req=req)


class Actuator(Protocol):
    """Bistable valve/cover. Calls only start a movement; completion is observed by polling."""

    def open(self) -> None: ...

    def close(self) -> None: ...

    def get_state(self) -> CoverState: ...


class SimulatedCover:
    """Cover that reaches the requested position `travel_time` seconds after the call."""

    def __init__(
        self,
        scheduler: Scheduler,
        travel_time: float = 4.0,
        initial: CoverState = CoverState.CLOSED,
        cover_id: int = 0,
    ) -> None:
        self.scheduler = scheduler
        self.travel_time = travel_time
        self.cover_id = cover_id
        self.jammed = False
        self.offline = False
        self._state = initial
        self._motion: Optional[TimerHandle] = None

    def open(self) -> None:
        self._move(CoverState.OPEN)

    def close(self) -> None:
        self._move(CoverState.CLOSED)

    def get_state(self) -> CoverState:
        if self.offline:
            raise ActuatorError(f"cover {self.cover_id} status unavailable")
        return self._state

    def _move(self, target: CoverState) -> None:
        if self.jammed:
            raise ActuatorError(f"cover {self.cover_id} jammed")
        if self._motion is not None:
            self._motion.cancel()
            self._motion = None
        if self._state is target:
            return
        logger.info("Cover %s moving -> %s", self.cover_id, target.value)
        self._state = CoverState.UNKNOWN
        self._motion = self.scheduler.call_later(self.travel_time, self._arrive, target)

    def _arrive(self, target: CoverState) -> None:
        self._motion = None
        self._state = target
        logger.info("Cover %s is %s", self.cover_id, target.value)


__all__ = ["ActuatorError", "Actuator", "SimulatedCover"]
