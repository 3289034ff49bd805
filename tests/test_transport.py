from __future__ import annotations

import asyncio
import random

from fakes import ManualScheduler
from shared.core import AsyncioScheduler, Impairment, LoopbackRadio, MessageRouter, UdpRadioLink
from shared.protocol import Message, MsgType, encode_frame, extract_frames


class ScriptedRandom:
    """Returns queued values from `random()`, falling back to a seeded stream."""

    def __init__(self, values):
        self.values = list(values)
        self.fallback = random.Random(0)

    def random(self):
        if self.values:
            return self.values.pop(0)
        return self.fallback.random()

    def randrange(self, *args):
        return self.fallback.randrange(*args)


def test_impairment_passes_clean_link_untouched():
    frame = encode_frame("t=PING;req=1")
    assert Impairment().apply(frame) == frame


def test_impairment_drops_and_corrupts():
    frame = encode_frame("t=PING;req=1")
    assert Impairment(loss_rate=1.0).apply(frame) is None

    damaged = Impairment(corrupt_rate=1.0, rng=random.Random(7)).apply(frame)
    assert damaged is not None and damaged != frame
    assert len(damaged) == len(frame)
    assert sum(a != b for a, b in zip(damaged, frame)) == 1


def test_loopback_delivers_after_latency_with_source_id():
    scheduler = ManualScheduler()
    medium = LoopbackRadio(scheduler, latency=0.05)
    a = medium.attach(101)
    b = medium.attach(102)
    received = []
    b.set_receiver(lambda source, data: received.append((scheduler.now(), source, data)))

    a.send(102, b"hello")
    assert received == []
    scheduler.advance(0.05)
    assert received == [(0.05, 101, b"hello")]


def test_loopback_loss_and_unknown_destination():
    scheduler = ManualScheduler()
    medium = LoopbackRadio(scheduler, impairment=Impairment(rng=ScriptedRandom([0.1, 0.9])))
    medium.impairment.loss_rate = 0.5
    a = medium.attach(101)
    b = medium.attach(102)
    received = []
    b.set_receiver(lambda source, data: received.append(data))

    a.send(102, b"first")
    a.send(102, b"second")
    a.send(999, b"nowhere")
    scheduler.advance(1)
    assert received == [b"second"]


class FakeDatagramTransport:
    def __init__(self):
        self.sent = []
        self.closed = False

    def sendto(self, data, addr):
        self.sent.append((data, addr))

    def close(self):
        self.closed = True


ADDRESSES = {101: ("127.0.0.1", 9101), 102: ("127.0.0.1", 9102)}


def test_udp_link_maps_peer_address_to_node_id():
    link = UdpRadioLink(101, ADDRESSES)
    received = []
    link.set_receiver(lambda source, data: received.append((source, data)))

    link.datagram_received(b"payload", ("127.0.0.1", 9102))
    link.datagram_received(b"intruder", ("10.0.0.9", 5000))
    assert received == [(102, b"payload")]


def test_udp_link_send_requires_started_transport(caplog):
    link = UdpRadioLink(101, ADDRESSES)
    link.send(102, b"early")
    assert "link not started" in caplog.text

    fake = FakeDatagramTransport()
    link.connection_made(fake)
    link.send(102, b"frame")
    link.send(555, b"lost")
    assert fake.sent == [(b"frame", ("127.0.0.1", 9102))]

    link.close()
    assert fake.closed


class CountingImpairment(Impairment):
    calls = 0

    def apply(self, data):
        self.calls += 1
        return super().apply(data)


def test_udp_link_impairs_each_datagram_once():
    impairment = CountingImpairment()
    a = UdpRadioLink(101, ADDRESSES, impairment)
    b = UdpRadioLink(102, ADDRESSES, impairment)
    fake = FakeDatagramTransport()
    a.connection_made(fake)
    received = []
    b.set_receiver(lambda source, data: received.append((source, data)))

    frame = Message.ping("p1").to_frame()
    a.send(102, frame)
    for data, _ in fake.sent:
        b.datagram_received(data, ADDRESSES[101])

    assert impairment.calls == 1
    assert received == [(101, frame)]


def test_router_contains_handler_failures():
    router = MessageRouter()
    seen = []

    def boom(message, source_id):
        raise RuntimeError("handler bug")

    router.register(MsgType.PING, boom)
    router.register(MsgType.PONG, lambda message, source_id: seen.append((message.req, source_id)))

    assert router.dispatch(Message.ping("p"), 102) is True
    assert router.dispatch(Message.pong("p"), 102) is True
    assert router.dispatch(Message.ack("a"), 102) is False
    assert seen == [("p", 102)]


def test_frames_survive_loopback_roundtrip():
    scheduler = ManualScheduler()
    medium = LoopbackRadio(scheduler)
    a = medium.attach(101)
    b = medium.attach(102)
    payloads = []
    b.set_receiver(lambda source, data: payloads.extend(extract_frames(data)))
    a.send(102, Message.ack("r1").to_frame() + Message.pong("r2").to_frame())
    scheduler.advance(0)
    assert payloads == ["t=ACK;req=r1", "t=PONG;req=r2"]


def test_asyncio_scheduler_fires_and_cancels():
    async def scenario():
        scheduler = AsyncioScheduler()
        fired = []
        started = scheduler.now()
        scheduler.call_later(0.01, fired.append, "kept")
        scheduler.call_later(0.01, fired.append, "cancelled").cancel()
        await asyncio.sleep(0.05)
        return fired, scheduler.now() - started

    fired, elapsed = asyncio.run(scenario())
    assert fired == ["kept"]
    assert elapsed >= 0.01
