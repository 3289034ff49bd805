from __future__ import annotations

import asyncio
import logging

from responder.config import RESPONDER_CONFIG, load_config
from responder.core import ResponderNode, SimulatedCover
from shared.core import AsyncioScheduler, Impairment, UdpRadioLink
from shared.settings import load_settings
from shared.utils.common import ms_to_s

logger = logging.getLogger(__name__)


async def run_responder() -> None:
    load_config()
    settings = load_settings()
    logging.basicConfig(level=str(RESPONDER_CONFIG["log_level"]).upper())

    scheduler = AsyncioScheduler()
    link = UdpRadioLink(
        settings.responder_id,
        settings.address_book(),
        Impairment(loss_rate=settings.loss_rate, corrupt_rate=settings.corrupt_rate),
    )
    cover = SimulatedCover(
        scheduler,
        travel_time=ms_to_s(RESPONDER_CONFIG["travel_ms"]),
        cover_id=RESPONDER_CONFIG["cover_id"],
    )
    node = ResponderNode(link, scheduler, cover)

    await link.start()
    logger.info("Responder %s ready (cover %s)", settings.responder_id, RESPONDER_CONFIG["cover_id"])
    try:
        await asyncio.Event().wait()  # keep running
    finally:
        node.stop()
        link.close()


def main() -> None:
    asyncio.run(run_responder())


if __name__ == "__main__":
    main()
