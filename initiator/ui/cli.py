from __future__ import annotations

import asyncio
import logging

from initiator.core import CommandOutcome, InitiatorNode
from shared.core.events import InputTriggered

from .status import IndicatorPanel

logger = logging.getLogger(__name__)


class ValveCLI:
    """Console stand-in for the physical open/close buttons."""

    def __init__(self, node: InitiatorNode, panel: IndicatorPanel) -> None:
        self.node = node
        self.panel = panel
        node.sessions.on_outcome = self.show_outcome

    async def run(self) -> None:
        logger.info("CLI ready. Type 'help' for commands.")
        loop = asyncio.get_running_loop()
        while True:
            try:
                line = await loop.run_in_executor(None, input, "> ")
            except EOFError:
                break
            parts = line.strip().split()
            if not parts:
                continue
            match parts[0]:
                case "help":
                    self._show_help()
                case "open":
                    self._press(self.node.config["open_button_id"])
                case "close":
                    self._press(self.node.config["close_button_id"])
                case "press":
                    self._handle_press(parts)
                case "ping":
                    req = self.node.heartbeat.send_ping()
                    print(f"PING req={req}" if req else "Ping skipped (command or ping in flight)")
                case "status":
                    self._show_status()
                case "quit":
                    break
                case _:
                    print("Unknown command")

    def show_outcome(self, outcome: CommandOutcome) -> None:
        detail = outcome.err or (outcome.state.value if outcome.state else "-")
        print(
            f"{outcome.cmd.value} {outcome.status.value}: {detail} "
            f"(req={outcome.req}, sends={outcome.send_count}, {outcome.elapsed_ms} ms)"
        )

    def _press(self, button_id: int) -> None:
        self.node.handle_event(InputTriggered(id=int(button_id)))

    def _handle_press(self, parts: list[str]) -> None:
        if len(parts) < 2 or not parts[1].isdigit():
            print("Usage: press <button_id>")
            return
        self._press(int(parts[1]))

    def _show_status(self) -> None:
        pending = self.node.sessions.pending
        if pending:
            print(f"Pending: {pending.label} req={pending.req} acked={pending.ack_received} sends={pending.send_count}")
        else:
            print("Pending: none")
        print(f"Link: {self.node.heartbeat.link_state.value}")
        print("Indicators:", self.panel.snapshot())

    def _show_help(self) -> None:
        print("Commands: open, close, press <button_id>, ping, status, quit")


__all__ = ["ValveCLI"]
