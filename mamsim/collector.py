"""Mobile sink that broadcasts discovery beacons and collects sensor data."""

from __future__ import annotations

import enum
import logging
from typing import Callable

from mamsim.runtime import (
    Address,
    BMeshPacket,
    Packet,
    Scheduler,
    SimulationError,
    Timer,
    UdpSocket,
    uuid_scalar_names,
)

logger = logging.getLogger(__name__)

DATA_PACKET_SIZE = 11


class _Kind(enum.IntEnum):
    START = 1
    STOP = 2
    DISCOVERY = 3


class DataCollectorApp:
    """Counts unique and repeated data packets and forwards new ones."""

    def __init__(
        self,
        scheduler: Scheduler,
        local_port: int,
        dest_port: int,
        start_time: float = 0.0,
        stop_time: float = -1.0,
        discovery_interval: float = 1.0,
        dont_fragment: bool = False,
    ) -> None:
        if stop_time >= 0 and stop_time < start_time:
            raise SimulationError("Invalid startTime/stopTime parameters")
        self.scheduler = scheduler
        self.local_port = local_port
        self.dest_port = dest_port
        self.start_time = start_time
        self.stop_time = stop_time
        self.discovery_interval = discovery_interval
        self.dont_fragment = dont_fragment

        self.socket = UdpSocket()
        self.timer = Timer("UDPSinkTimer", self.handle_timer)
        self.forward: Callable[[Packet], None] | None = None

        self.num_sent_discovery = 0
        self.num_sent_data_ack = 0
        self.num_received = 0
        self.num_unique = 0
        self.num_senders = 0
        self.unique_data_bytes_received = 0
        self.excess_data_bytes_received = 0
        self.excess_data_packets_received = 0
        self.unique_packet_uuids: set[str] = set()
        self.unique_senders: set[str] = set()
        self.data_delays: list[float] = []

    def _has_stop_time(self) -> bool:
        return self.stop_time >= 0

    def start(self) -> None:
        """Schedule the start unless the stop time has already passed."""
        start = max(self.start_time, self.scheduler.now)
        if (
            not self._has_stop_time()
            or start < self.stop_time
            or (start == self.stop_time and self.start_time == self.stop_time)
        ):
            self._schedule(_Kind.START, start)

    def stop(self) -> None:
        """Cancel pending work and close the socket."""
        self.scheduler.cancel(self.timer)
        self.socket.close()

    def _schedule(self, kind: _Kind, time: float) -> None:
        self.timer.kind = kind
        self.scheduler.schedule_at(time, self.timer)

    def handle_timer(self, timer: Timer) -> None:
        if timer is not self.timer:
            raise SimulationError(f"unexpected timer {timer.name!r}")
        try:
            kind = _Kind(timer.kind)
        except ValueError:
            raise SimulationError(f"Invalid kind {timer.kind} in self message") from None
        if kind is _Kind.START:
            self._process_start()
        elif kind is _Kind.STOP:
            self.socket.close()
        else:
            self._process_discovery()

    def _process_start(self) -> None:
        self.socket.bind(self.local_port)
        self.socket.broadcast = True
        if self._has_stop_time():
            self._schedule(_Kind.STOP, self.stop_time)
        else:
            self._schedule(_Kind.DISCOVERY, self.scheduler.now + self.discovery_interval)

    def _process_discovery(self) -> None:
        self._broadcast("MAMCDISCOVERY")
        self.num_sent_discovery += 1
        next_time = self.scheduler.now + self.discovery_interval
        if not self._has_stop_time() or next_time < self.stop_time:
            self._schedule(_Kind.DISCOVERY, next_time)
        else:
            self._schedule(_Kind.STOP, self.stop_time)

    def _send_data_ack(self) -> None:
        self._broadcast("DATA-ACK")
        self.num_sent_data_ack += 1

    def _broadcast(self, name: str) -> None:
        payload = BMeshPacket(chunk_length=1, creation_time=self.scheduler.now)
        packet = Packet(name, payload, dont_fragment=self.dont_fragment)
        self.socket.send_to(packet, Address.broadcast(), self.dest_port)

    def receive(self, packet: Packet) -> None:
        """Account for a packet that arrived on the socket."""
        size = packet.byte_length()
        data = packet.payload
        if data is None:
            raise SimulationError(f"packet {packet.name!r} carries no mesh payload")
        logger.info("Received packet: %s size = %d bytes", packet.name, size)
        if data.sequence <= 0:
            return
        if size != DATA_PACKET_SIZE:
            raise SimulationError(f"data packet of {size} bytes, expected {DATA_PACKET_SIZE}")
        self.data_delays.append(self.scheduler.now - data.creation_time)
        if data.packet_uuid not in self.unique_packet_uuids:
            self.unique_packet_uuids.add(data.packet_uuid)
            self.unique_data_bytes_received += size
            if self.forward is not None:
                self.forward(packet.dup())
        else:
            self.excess_data_packets_received += 1
            self.excess_data_bytes_received += size
        self.unique_senders.add(data.src_uuid)
        self.num_unique = len(self.unique_packet_uuids)
        self.num_senders = len(self.unique_senders)
        self.num_received += 1

    def finish(self) -> dict[str, float]:
        """Scalars recorded at the end of the run."""
        scalars: dict[str, float] = {
            "unique data packets received": len(self.unique_packet_uuids),
            "unique data packets bytes received": self.unique_data_bytes_received,
            "repeated data packets received": self.excess_data_packets_received,
            "repeated data packets bytes received": self.excess_data_bytes_received,
        }
        for name in uuid_scalar_names("received packet uuids", self.unique_packet_uuids):
            scalars[name] = 1.0
        logger.info(
            "received %d packets (%d unique from %d senders)",
            self.num_received,
            self.num_unique,
            self.num_senders,
        )
        return scalars

    def display_text(self) -> str:
        return f"rcvd: {self.num_received} pks ({self.num_unique} unique from {self.num_senders} senders)"