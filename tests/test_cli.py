from __future__ import annotations

from fakes import ManualScheduler, RecordingTransport
from initiator.config import DEFAULT_CONFIG
from initiator.core import CommandOutcome, InitiatorNode, OutcomeStatus
from initiator.ui.cli import ValveCLI
from initiator.ui.status import IndicatorPanel
from shared.protocol import Command, CoverState, MsgType


def _cli():
    scheduler = ManualScheduler()
    transport = RecordingTransport(scheduler)
    panel = IndicatorPanel(labels={200: "valve open", 201: "link reachable"})
    node = InitiatorNode(transport, scheduler, panel, dict(DEFAULT_CONFIG))
    return transport, node, panel, ValveCLI(node, panel)


def test_cli_registers_as_outcome_listener():
    _, node, _, cli = _cli()
    assert node.sessions.on_outcome == cli.show_outcome


def test_press_sends_command(capsys):
    transport, node, _, cli = _cli()
    cli._handle_press(["press", "201"])
    assert transport.messages(MsgType.CMD)[0][2].command is Command.CLOSE

    cli._handle_press(["press", "abc"])
    assert "Usage" in capsys.readouterr().out


def test_status_and_outcome_output(capsys):
    _, node, panel, cli = _cli()
    node.open_valve()
    cli._show_status()
    out = capsys.readouterr().out
    assert "Pending: opening" in out
    assert "Link: unknown" in out

    panel.set_indicator(200, True)
    cli.show_outcome(
        CommandOutcome(
            req="abc",
            cmd=Command.OPEN,
            status=OutcomeStatus.SUCCEEDED,
            state=CoverState.OPEN,
            err=None,
            elapsed_ms=4100,
            send_count=1,
        )
    )
    out = capsys.readouterr().out
    assert "OPEN succeeded: open" in out
    assert "sends=1" in out
