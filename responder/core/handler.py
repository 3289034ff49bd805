from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from responder.config import RESPONDER_CONFIG
from shared.core.burst import BurstTransmitter
from shared.core.scheduler import Scheduler, TimerHandle
from shared.core.transport import Transport
from shared.protocol.commands import Command, CoverState, command_label, target_state
from shared.protocol.errors import ErrorCode
from shared.protocol.messages import Message
from shared.utils.common import elapsed_ms, ms_to_s

from .actuator import Actuator, ActuatorError
from .ledger import DedupLedger

logger = logging.getLogger(__name__)


@dataclass
class ActionJob:
    req: str
    source_id: int
    cmd: Command
    target: CoverState
    started_at: float
    last_state: CoverState = CoverState.UNKNOWN
    poll_handle: Optional[TimerHandle] = None


def _as_state(value: Any) -> CoverState:
    try:
        return CoverState(value)
    except ValueError:
        return CoverState.UNKNOWN


class CommandHandler:
    """Executes CMD requests idempotently and reports completion.

    Every accepted ``req`` is acknowledged with an ACK burst; only its first
    arrival within the ledger TTL starts the actuator. Completion is detected
    by polling the actuator and reported with a DONE (or ERR) burst.
    """

    def __init__(
        self,
        transport: Transport,
        scheduler: Scheduler,
        actuator: Actuator,
        config: Optional[Dict[str, Any]] = None,
        burst: Optional[BurstTransmitter] = None,
        ledger: Optional[DedupLedger] = None,
    ) -> None:
        self.transport = transport
        self.scheduler = scheduler
        self.actuator = actuator
        self.config = config or RESPONDER_CONFIG
        self.poll_interval: float = ms_to_s(self.config["poll_ms"])
        self.done_timeout: float = ms_to_s(self.config["done_timeout_ms"])
        self.ack_retries: int = int(self.config["ack_retries"])
        self.ack_spacing: float = ms_to_s(self.config["ack_spacing_ms"])
        self.done_retries: int = int(self.config["done_retries"])
        self.done_spacing: float = ms_to_s(self.config["done_spacing_ms"])
        self.burst = burst or BurstTransmitter(transport, scheduler, self.ack_spacing, name="responder")
        self.ledger = ledger or DedupLedger(
            ms_to_s(self.config["seen_ttl_ms"]), scheduler.now, int(self.config["seen_max_entries"])
        )
        self._jobs: Dict[str, ActionJob] = {}
        self._deferred: Dict[str, TimerHandle] = {}

    @property
    def jobs(self) -> Dict[str, ActionJob]:
        return dict(self._jobs)

    def handle_cmd(self, message: Message, source_id: int) -> None:
        req = message.req
        label = command_label(message.cmd or "")
        self.ledger.prune()

        if self.ledger.seen(req):
            logger.info("Duplicate req=%s (%s), re-sending ACK only", req, label)
            self._send_ack(source_id, req)
            return
        self.ledger.record(req)

        logger.info("Command %s req=%s from %s, sending ACK burst", label, req, source_id)
        self._send_ack(source_id, req)

        command = message.command
        target = target_state(command) if command else None
        if command is None or target is None:
            logger.warning("Unknown cmd %r req=%s", message.cmd, req)
            self._send_terminal(source_id, Message.error(req, f"unknown cmd: {message.cmd}"))
            return

        self._supersede(req)
        try:
            if command is Command.OPEN:
                self.actuator.open()
            else:
                self.actuator.close()
        except ActuatorError as exc:
            logger.warning("%s failed req=%s: %s", label, req, exc.message)
            self._send_terminal(source_id, Message.error(req, f"{command.value.lower()} failed: {exc.message}"))
            return

        logger.info("Started %s, waiting for state %s req=%s", label, target.value, req)
        job = ActionJob(req=req, source_id=source_id, cmd=command, target=target, started_at=self.scheduler.now())
        self._jobs[req] = job
        self._poll(req)

    def handle_ping(self, message: Message, source_id: int) -> None:
        self.transport.send(source_id, Message.pong(message.req).to_frame())
        logger.debug("PONG req=%s -> %s", message.req, source_id)

    def shutdown(self) -> None:
        for job in self._jobs.values():
            if job.poll_handle is not None:
                job.poll_handle.cancel()
        self._jobs.clear()
        for handle in self._deferred.values():
            handle.cancel()
        self._deferred.clear()
        self.burst.cancel()

    def _poll(self, req: str) -> None:
        job = self._jobs.get(req)
        if job is None:
            return
        job.poll_handle = None
        label = command_label(job.cmd)

        try:
            state = _as_state(self.actuator.get_state())
        except ActuatorError as exc:
            logger.warning("State query failed req=%s: %s", req, exc.message)
            self._finish(job, Message.error(req, f"state query failed: {exc.message}"))
            return
        job.last_state = state

        elapsed = elapsed_ms(job.started_at, self.scheduler.now())
        if state is job.target:
            logger.info("%s complete (state=%s) req=%s elapsed_ms=%s", label, state.value, req, elapsed)
            self._finish(job, Message.done(req, True, state))
            return
        if self.scheduler.now() - job.started_at > self.done_timeout:
            logger.warning(
                "%s %s (state=%s) req=%s elapsed_ms=%s",
                ErrorCode.COMPLETION_TIMEOUT.name,
                label,
                state.value,
                req,
                elapsed,
            )
            self._finish(job, Message.done(req, False, state))
            return
        job.poll_handle = self.scheduler.call_later(self.poll_interval, self._poll, req)

    def _finish(self, job: ActionJob, message: Message) -> None:
        if job.poll_handle is not None:
            job.poll_handle.cancel()
            job.poll_handle = None
        self._jobs.pop(job.req, None)
        self._send_terminal(job.source_id, message)

    def _supersede(self, req: str) -> None:
        for other in list(self._jobs.values()):
            if other.req == req:
                continue
            logger.info("req=%s superseded by req=%s, stop polling", other.req, req)
            if other.poll_handle is not None:
                other.poll_handle.cancel()
            del self._jobs[other.req]

    def _send_ack(self, destination_id: int, req: str) -> None:
        self.burst.burst(destination_id, Message.ack(req), self.ack_retries, self.ack_spacing)

    def _send_terminal(self, destination_id: int, message: Message) -> None:
        """DONE/ERR must not be lost to a running burst: retry until the transmitter is free."""
        self._deferred.pop(message.req, None)
        if self.burst.burst(destination_id, message, self.done_retries, self.done_spacing):
            return
        logger.debug("%s req=%s deferred, transmitter busy", message.t.value, message.req)
        self._deferred[message.req] = self.scheduler.call_later(
            self.poll_interval, self._send_terminal, destination_id, message
        )


__all__ = ["ActionJob", "CommandHandler"]
