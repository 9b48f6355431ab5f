"""Configuration, state and message sending shared by mesh node applications."""

from __future__ import annotations

import enum
import logging
import random
from collections import deque
from dataclasses import dataclass, field

from mamsim.ids import generate_hex
from mamsim.lrucache import LruCache
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

DEFAULT_HOPS = 127
DATA_CACHE_SIZE = 100
POLL_TIMEOUT_MS = 2000
POLL_INTERVAL_MS = 1700


class RelayMode(enum.Enum):
    """Plain mesh flooding or the custom sink-directed relay."""

    BMESH = "BMesh"
    MAM = "MAM"

    @classmethod
    def parse(cls, value: "RelayMode | str") -> "RelayMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            raise SimulationError(f'Invalid relay mode: "{value}"') from None


class MessageName(str, enum.Enum):
    """Names carried by mesh control and data packets."""

    MAMCDISCOVERY = "MAMCDISCOVERY"
    DATA_SEND = "DATA_SEND"
    DISCONNECTED_MOBILE_SINK = "DISCONNECTED_MOBILE_SINK"
    FOUND_MOBILE_SINK = "FOUND_MOBILE_SINK"
    FRIEND_REQUEST = "FRIEND_REQUEST"
    FRIEND_OFFER = "FRIEND_OFFER"
    FRIEND_POLL = "FRIEND_POLL"
    FRIEND_UPDATE = "FRIEND_UPDATE"
    FRIEND_CLEAR = "FRIEND_CLEAR"


class TimerKind(enum.IntEnum):
    START = 1
    STOP = 2
    SEND_MY_DATA = 3


@dataclass
class NodeConfig:
    """Parameters of a mesh node."""

    local_port: int = -1
    dest_port: int = -1
    start_time: float = 0.0
    stop_time: float = -1.0
    dont_fragment: bool = False
    packet_name: str = ""
    local_address: str = ""
    dest_addresses: tuple[str, ...] = field(default_factory=tuple)
    relay_node: bool = False
    relay_mode: RelayMode | str = RelayMode.MAM
    delta: int = 0
    low_power_node: bool = False
    friend_node: bool = False

    def __post_init__(self) -> None:
        self.relay_mode = RelayMode.parse(self.relay_mode)
        self.dest_addresses = tuple(self.dest_addresses)
        if self.stop_time >= 0 and self.stop_time < self.start_time:
            raise SimulationError("Invalid startTime/stopTime parameters")

    @property
    def mam_relay(self) -> bool:
        return self.relay_mode is RelayMode.MAM


class MamNodeBase:
    """State of a mesh node and the primitives it uses to send messages."""

    def __init__(
        self,
        scheduler: Scheduler,
        config: NodeConfig,
        name: str = "node",
        rng: random.Random | None = None,
    ) -> None:
        self.scheduler = scheduler
        self.config = config
        self.name = name
        self.rng = rng if rng is not None else random.Random()

        self.socket = UdpSocket()
        self.socket.on_closed = self.socket_closed
        self.self_timer = Timer("sendTimer", self._on_timer)
        self.poll_timer = Timer("pollTimer", self._on_timer)

        self.node_uuid = name + generate_hex(32, self.rng)

        self.num_sent = 0
        self.num_received = 0
        self.num_data_sent = 0
        self.num_data_resent = 0
        self.num_data_ack_received = 0
        self.data_send_sequence = 0

        self.mobile_sink = Address()
        self.sink_hops = 0
        self.sink_best_route_expiry = 0.0
        self.last_found_sink_sent = 0.0
        self.last_sensor_data_sent = 0.0
        self.scheduled_send_data = False

        self.data_send_cache = LruCache(DATA_CACHE_SIZE)
        self.poll_timeout_ms = POLL_TIMEOUT_MS
        self.poll_interval_ms = POLL_INTERVAL_MS

        self.connected_friend_node = Address()
        self.friendship_established = False
        self.low_power_nodes: dict[str, deque[Packet]] = {}

        self.unique_data_senders: set[str] = set()
        self.unique_sent_packet_uuids: set[str] = set()

    @property
    def now(self) -> float:
        return self.scheduler.now

    def _now_ms(self) -> int:
        return int(self.scheduler.now * 1000)

    def _on_timer(self, timer: Timer) -> None:
        self.handle_timer(timer)

    def handle_timer(self, timer: Timer) -> None:
        """Handle a fired timer; the base node only knows how to stop."""
        if timer.kind == TimerKind.STOP:
            self.socket.close()
            return
        raise SimulationError(f"Invalid kind {timer.kind} in self message")

    def _make_packet(self, name: str, payload: BMeshPacket) -> Packet:
        return Packet(str(name), payload, dont_fragment=self.config.dont_fragment)

    def _send_control(self, name: str, dest: Address) -> None:
        """Send a one-byte control message without a hop limit."""
        payload = BMeshPacket(chunk_length=1, creation_time=self.now)
        self.socket.send_to(self._make_packet(name, payload), dest, self.config.dest_port)

    def send_simple_message(self, name: str, dest: Address, hops: int = DEFAULT_HOPS) -> Packet:
        """Send a one-byte message named ``name`` to ``dest``."""
        if hops < 0:
            raise SimulationError(f"Invalid number of hops: {hops}")
        payload = BMeshPacket(chunk_length=1, hops=hops, creation_time=self.now)
        packet = self._make_packet(name, payload)
        self.socket.send_to(packet, dest, self.config.dest_port)
        return packet

    def broadcast_simple_message(self, name: str, hops: int = DEFAULT_HOPS) -> Packet:
        """Send a one-byte message named ``name`` to the broadcast address."""
        if hops < 0:
            raise SimulationError(f"Invalid number of hops: {hops}")
        return self.send_simple_message(name, Address.broadcast(), hops)

    def send_data(self, data: BMeshPacket, dest: Address) -> Packet:
        """Send a data payload to ``dest`` and count it."""
        packet = self._make_packet(MessageName.DATA_SEND.value, data)
        self.num_data_sent += 1
        self.socket.send_to(packet, dest, self.config.dest_port)
        return packet

    def stop(self) -> None:
        """Cancel the pending timer and close the socket."""
        self.scheduler.cancel(self.self_timer)
        self.socket.close()

    def crash(self) -> None:
        """Cancel the pending timer and drop the socket without notice."""
        self.scheduler.cancel(self.self_timer)
        self.socket.destroy()

    def socket_closed(self) -> None:
        """Forget the mobile sink once the socket is closed."""
        logger.error("Socket Closed")
        self.mobile_sink = Address()

    def finish(self) -> dict[str, float]:
        """Scalars recorded at the end of the run."""
        scalars: dict[str, float] = {
            "packets sent": self.num_sent,
            "packets received": self.num_received,
            "data packets sent": self.num_data_sent,
            "data packets resent": self.num_data_resent,
            "ack packets received": self.num_data_ack_received,
            "my data sent": len(self.unique_sent_packet_uuids),
        }
        for scalar in uuid_scalar_names("generated packet uuids", self.unique_sent_packet_uuids):
            scalars[scalar] = 1.0
        failed = (self.num_data_sent + self.num_data_resent) - self.num_data_ack_received
        logger.info("%s: sent %d data packets", self.name, self.num_data_sent)
        logger.info("%s: resent %d data packets", self.name, self.num_data_resent)
        logger.info("%s: received %d data ack packets", self.name, self.num_data_ack_received)
        logger.info("%s: failed to send %d data packets", self.name, failed)
        logger.info("%s: received from %d senders", self.name, len(self.unique_data_senders))
        return scalars

    def display_text(self) -> str:
        return f"rcvd: {self.num_received} pks\nsent: {self.num_sent} pks"