"""Byte transports standing in for the radio.

The radio is unreliable: deliveries may be lost or corrupted. `Impairment`
reproduces that on top of a clean medium so both roles can be exercised
against a realistic link.
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Dict, Optional, Protocol, Tuple

from .scheduler import Scheduler

logger = logging.getLogger(__name__)

ReceiveCallback = Callable[[int, bytes], None]
Address = Tuple[str, int]


class Transport(Protocol):
    def send(self, destination_id: int, data: bytes) -> None: ...

    def set_receiver(self, callback: ReceiveCallback) -> None: ...


@dataclass
class Impairment:
    loss_rate: float = 0.0
    corrupt_rate: float = 0.0
    rng: random.Random = field(default_factory=random.Random)

    def should_drop(self) -> bool:
        return self.loss_rate > 0 and self.rng.random() < self.loss_rate

    def apply(self, data: bytes) -> Optional[bytes]:
        """Return the bytes as delivered, or ``None`` when the delivery is lost."""
        if self.should_drop():
            return None
        if data and self.corrupt_rate > 0 and self.rng.random() < self.corrupt_rate:
            damaged = bytearray(data)
            pos = self.rng.randrange(len(damaged))
            damaged[pos] ^= 1 << self.rng.randrange(8)
            return bytes(damaged)
        return data


class UdpRadioLink(asyncio.DatagramProtocol):
    """Emulated radio over UDP: node ids map to datagram endpoints.

    Impairment is applied once per datagram, on the sending side.
    """

    def __init__(
        self,
        node_id: int,
        address_book: Dict[int, Address],
        impairment: Optional[Impairment] = None,
    ) -> None:
        self.node_id = node_id
        self.address_book = dict(address_book)
        self.impairment = impairment or Impairment()
        self._ids_by_address: Dict[Address, int] = {addr: nid for nid, addr in self.address_book.items()}
        self._receiver: Optional[ReceiveCallback] = None
        self._transport: Optional[asyncio.DatagramTransport] = None

    def set_receiver(self, callback: ReceiveCallback) -> None:
        self._receiver = callback

    async def start(self) -> None:
        loop = asyncio.get_running_loop()
        local = self.address_book[self.node_id]
        await loop.create_datagram_endpoint(lambda: self, local_addr=local)
        logger.info("Radio link %s listening on %s:%s", self.node_id, *local)

    def close(self) -> None:
        if self._transport is not None:
            self._transport.close()
            self._transport = None

    def connection_made(self, transport: asyncio.BaseTransport) -> None:
        self._transport = transport  # type: ignore[assignment]

    def connection_lost(self, exc: Optional[Exception]) -> None:
        self._transport = None
        if exc:
            logger.warning("Radio link %s lost: %s", self.node_id, exc)

    def error_received(self, exc: Exception) -> None:
        logger.warning("Radio link %s error: %s", self.node_id, exc)

    def datagram_received(self, data: bytes, addr: Address) -> None:
        source_id = self._ids_by_address.get((addr[0], addr[1]))
        if source_id is None:
            logger.debug("Dropping datagram from unknown peer %s", addr)
            return
        if self._receiver is None:
            return
        self._receiver(source_id, data)

    def send(self, destination_id: int, data: bytes) -> None:
        addr = self.address_book.get(destination_id)
        if addr is None:
            logger.warning("TX FAIL dest=%s: unknown node", destination_id)
            return
        if self._transport is None:
            logger.warning("TX FAIL dest=%s: link not started", destination_id)
            return
        delivered = self.impairment.apply(data)
        if delivered is None:
            return
        try:
            self._transport.sendto(delivered, addr)
        except OSError as exc:
            logger.warning("TX FAIL dest=%s: %s", destination_id, exc)
            return
        logger.debug("TX OK -> %s (%s bytes)", destination_id, len(delivered))


class LoopbackRadio:
    """In-process shared medium; deliveries are scheduled on the given `Scheduler`."""

    def __init__(self, scheduler: Scheduler, latency: float = 0.0, impairment: Optional[Impairment] = None) -> None:
        self.scheduler = scheduler
        self.latency = latency
        self.impairment = impairment or Impairment()
        self._ports: Dict[int, RadioPort] = {}

    def attach(self, node_id: int) -> "RadioPort":
        port = RadioPort(self, node_id)
        self._ports[node_id] = port
        return port

    def transmit(self, source_id: int, destination_id: int, data: bytes) -> None:
        port = self._ports.get(destination_id)
        if port is None:
            logger.debug("No node %s on the medium", destination_id)
            return
        delivered = self.impairment.apply(data)
        if delivered is None:
            return
        self.scheduler.call_later(self.latency, port.deliver, source_id, delivered)


class RadioPort:
    """A node's attachment point to a `LoopbackRadio`."""

    def __init__(self, medium: LoopbackRadio, node_id: int) -> None:
        self.medium = medium
        self.node_id = node_id
        self._receiver: Optional[ReceiveCallback] = None

    def set_receiver(self, callback: ReceiveCallback) -> None:
        self._receiver = callback

    def send(self, destination_id: int, data: bytes) -> None:
        self.medium.transmit(self.node_id, destination_id, data)

    def deliver(self, source_id: int, data: bytes) -> None:
        if self._receiver is not None:
            self._receiver(source_id, data)


__all__ = [
    "ReceiveCallback",
    "Transport",
    "Impairment",
    "UdpRadioLink",
    "LoopbackRadio",
    "RadioPort",
]
