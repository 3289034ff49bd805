from __future__ import annotations

import asyncio
import logging

from initiator.config import INITIATOR_CONFIG, ConfigError, load_config
from initiator.core import InitiatorNode
from initiator.ui.cli import ValveCLI
from initiator.ui.status import IndicatorPanel
from shared.core import AsyncioScheduler, Impairment, UdpRadioLink
from shared.settings import load_settings


async def run_initiator() -> None:
    load_config()
    settings = load_settings()
    logging.basicConfig(level=str(INITIATOR_CONFIG["log_level"]).upper())
    address_book = settings.address_book()
    if INITIATOR_CONFIG["responder_id"] not in address_book:
        raise ConfigError(f"responder_id {INITIATOR_CONFIG['responder_id']} is not a known radio node")

    scheduler = AsyncioScheduler()
    link = UdpRadioLink(
        settings.initiator_id,
        address_book,
        Impairment(loss_rate=settings.loss_rate, corrupt_rate=settings.corrupt_rate),
    )
    panel = IndicatorPanel(
        labels={
            INITIATOR_CONFIG["valve_indicator_id"]: "valve open",
            INITIATOR_CONFIG["link_indicator_id"]: "link reachable",
        }
    )
    node = InitiatorNode(link, scheduler, panel)
    cli = ValveCLI(node, panel)

    await link.start()
    node.start()
    try:
        await cli.run()
    finally:
        node.stop()
        link.close()


def main() -> None:
    asyncio.run(run_initiator())


if __name__ == "__main__":
    main()
