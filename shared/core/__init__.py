from .burst import BurstTransmitter
from .events import InboundEvent, InputTriggered, RadioFrameReceived
from .node import BaseNode
from .router import MessageRouter
from .scheduler import AsyncioScheduler, Scheduler, TimerHandle
from .transport import Impairment, LoopbackRadio, RadioPort, Transport, UdpRadioLink

__all__ = [
    "BurstTransmitter",
    "InboundEvent",
    "InputTriggered",
    "RadioFrameReceived",
    "BaseNode",
    "MessageRouter",
    "AsyncioScheduler",
    "Scheduler",
    "TimerHandle",
    "Impairment",
    "LoopbackRadio",
    "RadioPort",
    "Transport",
    "UdpRadioLink",
]
