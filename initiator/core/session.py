from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Dict, Optional, Union

from initiator.config import INITIATOR_CONFIG
from initiator.ui.status import StatusSurface
from shared.core.scheduler import Scheduler, TimerHandle
from shared.core.transport import Transport
from shared.protocol.commands import Command, CoverState, command_label, normalize_command
from shared.protocol.errors import ErrorCode, ProtocolError
from shared.protocol.messages import Message
from shared.utils.common import elapsed_ms, generate_request_id, ms_to_s

logger = logging.getLogger(__name__)


class SessionError(ProtocolError):
    pass


class OutcomeStatus(StrEnum):
    SUCCEEDED = "succeeded"  # DONE ok=1
    FAILED = "failed"  # DONE ok=0, target state not reached in time
    ERROR = "error"  # ERR from the responder


@dataclass
class PendingCommand:
    req: str
    cmd: Command
    label: str
    issued_at: float
    ack_received: bool = False
    send_count: int = 0
    timeout_handle: Optional[TimerHandle] = None
    resend_handle: Optional[TimerHandle] = None


@dataclass(frozen=True)
class CommandOutcome:
    req: str
    cmd: Command
    status: OutcomeStatus
    state: Optional[CoverState]
    err: Optional[str]
    elapsed_ms: int
    send_count: int


OutcomeListener = Callable[[CommandOutcome], None]


class SessionManager:
    """Owns the single in-flight command: send, resend until ACK, absolute timeout."""

    def __init__(
        self,
        transport: Transport,
        scheduler: Scheduler,
        status: StatusSurface,
        config: Optional[Dict[str, Any]] = None,
        on_outcome: Optional[OutcomeListener] = None,
    ) -> None:
        self.transport = transport
        self.scheduler = scheduler
        self.status = status
        self.config = config or INITIATOR_CONFIG
        self.on_outcome = on_outcome
        self.responder_id: int = int(self.config["responder_id"])
        self.timeout: float = ms_to_s(self.config["timeout_ms"])
        self.resend_interval: float = ms_to_s(self.config["resend_interval_ms"])
        self.max_resends: int = int(self.config["max_resends"])
        self.valve_indicator_id: int = int(self.config["valve_indicator_id"])
        self._pending: Optional[PendingCommand] = None

    @property
    def pending(self) -> Optional[PendingCommand]:
        return self._pending

    @property
    def busy(self) -> bool:
        return self._pending is not None

    def issue(self, cmd: Union[str, Command]) -> Optional[str]:
        """Start a command session. Returns its ``req``, or ``None`` if one is already in flight."""
        try:
            command = Command(normalize_command(cmd))
        except ValueError as exc:
            raise SessionError(ErrorCode.PAYLOAD_INVALID, message=f"Unknown command {cmd!r}") from exc

        current = self._pending
        if current is not None:
            logger.warning(
                "Command %s ignored: %s already in progress (req=%s)", command.value, current.label, current.req
            )
            return None

        req = generate_request_id()
        pending = PendingCommand(req=req, cmd=command, label=command_label(command), issued_at=self.scheduler.now())
        self._pending = pending
        logger.info("START %s req=%s timeout_ms=%s", pending.label, req, self.config["timeout_ms"])

        pending.timeout_handle = self.scheduler.call_later(self.timeout, self._on_timeout, req)
        self._transmit(pending)
        self._arm_resend(pending)
        return req

    def cancel(self, reason: str = "cancelled") -> None:
        if self._pending is not None:
            self._release(self._pending, reason)

    # inbound

    def handle_ack(self, message: Message, source_id: int) -> None:
        pending = self._match(message)
        if pending is None:
            return
        pending.ack_received = True
        if pending.resend_handle is not None:
            pending.resend_handle.cancel()
            pending.resend_handle = None
        logger.info("ACK %s req=%s elapsed_ms=%s", pending.label, pending.req, self._elapsed(pending))

    def handle_done(self, message: Message, source_id: int) -> None:
        pending = self._match(message)
        if pending is None:
            return
        state = message.state
        logger.info(
            "DONE %s req=%s ok=%s state=%s elapsed_ms=%s",
            pending.label,
            pending.req,
            message.ok,
            state.value if state else None,
            self._elapsed(pending),
        )
        if state is CoverState.OPEN:
            self.status.set_indicator(self.valve_indicator_id, True)
        elif state is CoverState.CLOSED:
            self.status.set_indicator(self.valve_indicator_id, False)
        outcome = self._outcome(pending, OutcomeStatus.SUCCEEDED if message.ok else OutcomeStatus.FAILED, state, None)
        self._release(pending, "done")
        self._notify(outcome)

    def handle_err(self, message: Message, source_id: int) -> None:
        pending = self._match(message)
        if pending is None:
            return
        logger.warning("ERR %s req=%s err=%s elapsed_ms=%s", pending.label, pending.req, message.err, self._elapsed(pending))
        outcome = self._outcome(pending, OutcomeStatus.ERROR, None, message.err)
        self._release(pending, "err")
        self._notify(outcome)

    # timers

    def _on_timeout(self, req: str) -> None:
        pending = self._current(req)
        if pending is None:
            return
        pending.timeout_handle = None
        logger.warning(
            "%s %s req=%s acked=%s sends=%s elapsed_ms=%s",
            ErrorCode.SESSION_TIMEOUT.name,
            pending.label,
            req,
            pending.ack_received,
            pending.send_count,
            self._elapsed(pending),
        )
        self._release(pending, "timeout")

    def _on_resend(self, req: str) -> None:
        pending = self._current(req)
        if pending is None:
            return
        pending.resend_handle = None
        if pending.ack_received or self._budget_spent(pending):
            return
        logger.info(
            "No ACK, resending %s (send %s of %s) req=%s", pending.label, pending.send_count + 1, 1 + self.max_resends, req
        )
        self._transmit(pending)
        self._arm_resend(pending)

    # helpers

    def _transmit(self, pending: PendingCommand) -> None:
        pending.send_count += 1
        self.transport.send(self.responder_id, Message.command_request(pending.cmd, pending.req).to_frame())
        logger.debug("CMD %s sent (%s) req=%s", pending.cmd.value, pending.send_count, pending.req)

    def _arm_resend(self, pending: PendingCommand) -> None:
        if pending.ack_received or self._budget_spent(pending):
            return
        pending.resend_handle = self.scheduler.call_later(self.resend_interval, self._on_resend, pending.req)

    def _budget_spent(self, pending: PendingCommand) -> bool:
        return pending.send_count >= 1 + self.max_resends

    def _current(self, req: str) -> Optional[PendingCommand]:
        pending = self._pending
        if pending is None or pending.req != req:
            return None
        return pending

    def _match(self, message: Message) -> Optional[PendingCommand]:
        pending = self._current(message.req)
        if pending is None:
            logger.debug("%s: ignoring %s req=%s", ErrorCode.STALE_REQUEST.name, message.t.value, message.req)
        return pending

    def _release(self, pending: PendingCommand, reason: str) -> None:
        for handle in (pending.timeout_handle, pending.resend_handle):
            if handle is not None:
                handle.cancel()
        pending.timeout_handle = None
        pending.resend_handle = None
        if self._pending is pending:
            self._pending = None
        logger.debug("Cleared pending req=%s reason=%s", pending.req, reason)

    def _elapsed(self, pending: PendingCommand) -> int:
        return elapsed_ms(pending.issued_at, self.scheduler.now())

    def _outcome(
        self, pending: PendingCommand, status: OutcomeStatus, state: Optional[CoverState], err: Optional[str]
    ) -> CommandOutcome:
        return CommandOutcome(
            req=pending.req,
            cmd=pending.cmd,
            status=status,
            state=state,
            err=err,
            elapsed_ms=self._elapsed(pending),
            send_count=pending.send_count,
        )

    def _notify(self, outcome: CommandOutcome) -> None:
        if self.on_outcome is None:
            return
        try:
            self.on_outcome(outcome)
        except Exception as exc:
            logger.exception("Outcome listener failed for req=%s: %s", outcome.req, exc)


__all__ = ["SessionError", "OutcomeStatus", "PendingCommand", "CommandOutcome", "SessionManager"]
