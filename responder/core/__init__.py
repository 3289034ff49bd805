from .actuator import Actuator, ActuatorError, SimulatedCover
from .handler import ActionJob, CommandHandler
from .ledger import DedupLedger, SeenEntry
from .node import ResponderNode

__all__ = [
    "Actuator",
    "ActuatorError",
    "SimulatedCover",
    "ActionJob",
    "CommandHandler",
    "DedupLedger",
    "SeenEntry",
    "ResponderNode",
]
