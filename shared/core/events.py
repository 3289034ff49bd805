from __future__ import annotations

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class InputTriggered:
    """A physical (or console) input fired, e.g. the open/close button."""

    id: int


@dataclass(frozen=True)
class RadioFrameReceived:
    """Raw bytes delivered by the radio from `source_id`; may hold 0..n frames."""

    source_id: int
    data: bytes


InboundEvent = Union[InputTriggered, RadioFrameReceived]

__all__ = ["InputTriggered", "RadioFrameReceived", "InboundEvent"]
