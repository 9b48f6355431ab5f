"""Mesh node application: sink discovery, data relaying and friendship."""

from __future__ import annotations

import dataclasses
import logging
import math
from collections import deque

from mamsim.ids import generate_uuid_v4
from mamsim.md5 import md5
from mamsim.nodebase import DEFAULT_HOPS, MamNodeBase, MessageName, TimerKind
from mamsim.runtime import Address, BMeshPacket, Packet, SimulationError, Timer

logger = logging.getLogger(__name__)

LOOPBACK = "127.0.0.1"
DATA_CHUNK_LENGTH = 11
DISCOVERY_SINK_HOPS = 128
DISCOVERY_ROUTE_LIFETIME = 20.0
CACHE_LIFETIME_MS = 1000
FOUND_SINK_MIN_INTERVAL_MS = 100
DATA_SEND_MIN_GAP = 0.1
DATA_SEND_DELAY = 0.001
FRIEND_UPDATE_HOPS = 1
FRIEND_UPDATE_SINK_HOPS = 20


def _truncate_ms(time: float) -> float:
    return math.floor(round(time * 1000, 6)) / 1000


class MamNodeApp(MamNodeBase):
    """A node that sends its data towards a mobile sink and relays for others."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.dest_addresses: list[Address] = []

    # Lifecycle

    def start(self) -> None:
        """Schedule the start unless the stop time has already passed."""
        config = self.config
        start = max(config.start_time, self.now)
        if (
            config.stop_time < 0
            or start < config.stop_time
            or (start == config.stop_time and config.start_time == config.stop_time)
        ):
            self.self_timer.kind = TimerKind.START
            self.scheduler.schedule_at(start, self.self_timer)

    def handle_timer(self, timer: Timer) -> None:
        if timer is self.poll_timer:
            self._send_friend_poll()
            self._schedule_poll()
            return
        if timer is not self.self_timer:
            raise SimulationError(f"unexpected timer {timer.name!r}")
        if timer.kind == TimerKind.START:
            self._process_start()
        elif timer.kind == TimerKind.SEND_MY_DATA:
            self._process_send_my_data()
        elif timer.kind == TimerKind.STOP:
            self.socket.close()
        else:
            raise SimulationError(f"Invalid kind {timer.kind} in self message")

    def _schedule_poll(self) -> None:
        when = _truncate_ms(self.now + self.poll_interval_ms / 1000)
        self.scheduler.schedule_at(when, self.poll_timer)

    def _process_start(self) -> None:
        self.socket.bind(self.config.local_port)
        self.dest_addresses = [Address(token) for token in self.config.dest_addresses]

        if self.dest_addresses:
            self.self_timer.kind = TimerKind.SEND_MY_DATA
        else:
            logger.error("%s: no destination addresses configured", self.name)
            if self.config.stop_time >= 0:
                self.self_timer.kind = TimerKind.STOP
                self.scheduler.schedule_at(self.config.stop_time, self.self_timer)

        if self.config.low_power_node:
            if not self.connected_friend_node.is_unspecified():
                raise SimulationError("low power node already has a friend at start")
            self._send_friend_request()

    def _choose_dest_addr(self) -> Address:
        return self.rng.choice(self.dest_addresses)

    # Own data

    def _process_send_my_data(self) -> None:
        self.scheduled_send_data = False
        mam = self.config.mam_relay
        if mam and self.mobile_sink.is_unspecified():
            logger.error("%s: mobile sink not found when trying to send data", self.name)
            return

        dest = self.mobile_sink if mam else Address.broadcast()
        uuid = generate_uuid_v4(self.rng)
        self.unique_sent_packet_uuids.add(uuid)
        self.data_send_sequence += 1
        payload = BMeshPacket(
            chunk_length=DATA_CHUNK_LENGTH,
            hops=DEFAULT_HOPS,
            packet_uuid=uuid,
            src_uuid=self.node_uuid,
            sequence=self.data_send_sequence,
            creation_time=self.now,
        )
        packet = self._make_packet(MessageName.DATA_SEND.value, payload)
        self.socket.send_to(packet, dest, self.config.dest_port)
        self.last_sensor_data_sent = self.now

    def _send_my_data_to_sink(self) -> None:
        if self.scheduled_send_data:
            return
        if not self.mobile_sink.is_unspecified() or not self.config.mam_relay:
            start = max(self.last_sensor_data_sent + DATA_SEND_MIN_GAP, self.now + DATA_SEND_DELAY)
            self.scheduled_send_data = True
            self.scheduler.cancel(self.self_timer)
            self.self_timer.kind = TimerKind.SEND_MY_DATA
            self.scheduler.schedule_at(start, self.self_timer)

    # Incoming messages

    def receive(self, packet: Packet) -> None:
        """Handle a packet that arrived from the network."""
        src = packet.src
        if src.value == LOOPBACK:
            return
        logger.debug("%s received %s from %s", self.name, packet.name, src)

        name = packet.name
        if name == MessageName.FOUND_MOBILE_SINK:
            if packet.payload is None:
                raise SimulationError(f"packet {name!r} carries no mesh payload")
            self._process_found_mobile_sink(src, packet.payload.hops)
        elif name == MessageName.DISCONNECTED_MOBILE_SINK:
            self._process_disconnected_mobile_sink(src)
        elif name == MessageName.MAMCDISCOVERY:
            self._process_discovery(src)
        elif name == MessageName.DATA_SEND:
            self._process_data_send(packet, src)
        elif name == MessageName.FRIEND_REQUEST:
            self._process_friend_request(src)
        elif name == MessageName.FRIEND_OFFER:
            self._process_friend_offer(src)
        elif name == MessageName.FRIEND_POLL:
            self._process_friend_poll(src)
        elif name == MessageName.FRIEND_UPDATE:
            self._process_friend_update(src)
        else:
            logger.info("%s: received packet %s", self.name, name)
            self.num_received += 1

    def _notify_low_power_nodes(self) -> None:
        for queue in self.low_power_nodes.values():
            queue.append(Packet(""))

    def _process_disconnected_mobile_sink(self, src: Address) -> None:
        if src == self.mobile_sink:
            self.mobile_sink = Address()
        if self.config.relay_node:
            self.broadcast_simple_message(MessageName.DISCONNECTED_MOBILE_SINK.value)
        self._notify_low_power_nodes()

    def _process_discovery(self, src: Address) -> None:
        # Discovery comes straight from the sink, so it is the best route.
        self.mobile_sink = src
        self.sink_hops = DISCOVERY_SINK_HOPS
        self.sink_best_route_expiry = self.now + DISCOVERY_ROUTE_LIFETIME
        if self.config.relay_node:
            self.broadcast_simple_message(MessageName.FOUND_MOBILE_SINK.value)
        self._notify_low_power_nodes()

    def _process_found_mobile_sink(self, src: Address, hops: int) -> None:
        config = self.config
        if config.mam_relay and (
            self.mobile_sink.is_unspecified()
            or self.now > self.sink_best_route_expiry
            or hops > self.sink_hops
        ):
            self.mobile_sink = src
            self.sink_hops = hops
            self.sink_best_route_expiry = self.now + config.delta / 1000

        self._send_my_data_to_sink()

        if self.low_power_nodes:
            if not config.friend_node:
                raise SimulationError("only a friend node may hold low power nodes")
            self._notify_low_power_nodes()

        if not config.relay_node:
            return
        if config.mam_relay:
            elapsed_ms = self._now_ms() - int(self.last_found_sink_sent * 1000)
            if elapsed_ms > FOUND_SINK_MIN_INTERVAL_MS:
                self.last_found_sink_sent = self.now
                self.broadcast_simple_message(MessageName.FOUND_MOBILE_SINK.value)
        elif hops > 0:
            key = md5(f"{MessageName.FOUND_MOBILE_SINK.value}_{src}")
            now_ms = self._now_ms()
            if not self.data_send_cache.exists(key, now_ms):
                self.data_send_cache.put(key, 1, now_ms + CACHE_LIFETIME_MS)
                self.broadcast_simple_message(MessageName.FOUND_MOBILE_SINK.value, hops)

    def _process_data_send(self, packet: Packet, src: Address) -> None:
        if not self.config.relay_node:
            return
        mam = self.config.mam_relay
        if mam and self.mobile_sink.is_unspecified():
            self.send_simple_message(MessageName.DISCONNECTED_MOBILE_SINK.value, src, DEFAULT_HOPS)
            return
        if packet.payload is None:
            raise SimulationError(f"packet {packet.name!r} carries no mesh payload")

        data = dataclasses.replace(packet.payload)
        now_ms = self._now_ms()
        if self.data_send_cache.exists(data.packet_uuid, now_ms):
            return
        self.data_send_cache.put(data.packet_uuid, 1, now_ms + CACHE_LIFETIME_MS)
        self.unique_data_senders.add(data.src_uuid)
        self.send_data(data, self.mobile_sink if mam else Address.broadcast())

    # Friendship

    def _process_friend_request(self, src: Address) -> None:
        if self.config.friend_node:
            self.send_simple_message(MessageName.FRIEND_OFFER.value, src, DEFAULT_HOPS)

    def _process_friend_offer(self, src: Address) -> None:
        if not self.config.low_power_node:
            raise SimulationError("Error: Non-LPN received a friend offer")
        if self.connected_friend_node.is_unspecified():
            self.connected_friend_node = src
            self._send_friend_poll()

    def _process_friend_poll(self, src: Address) -> None:
        if not self.config.friend_node:
            raise SimulationError("friend poll received by a node that is not a friend node")
        key = str(src)
        queue = self.low_power_nodes.get(key)
        if queue is None:
            self.low_power_nodes[key] = deque()
            self.send_simple_message(MessageName.FRIEND_UPDATE.value, src, FRIEND_UPDATE_HOPS)
        elif queue:
            # Pending notifications are reported but stay queued.
            self.send_simple_message(MessageName.FRIEND_UPDATE.value, src, FRIEND_UPDATE_HOPS)

    def _process_friend_update(self, src: Address) -> None:
        if not self.config.low_power_node:
            raise SimulationError("friend update received by a node that is not low power")
        if self.connected_friend_node != src:
            raise SimulationError(f"friend update from {src}, not from the connected friend")
        if not self.friendship_established:
            self.friendship_established = True
            self._send_friend_established_internal()
            self._schedule_poll()
            self._send_friend_poll()
        else:
            self._process_found_mobile_sink(src, FRIEND_UPDATE_SINK_HOPS)

    def _require_low_power(self) -> None:
        if not self.config.low_power_node or self.config.friend_node:
            raise SimulationError("only a low power node that is not a friend node may do this")

    def _send_friend_request(self) -> None:
        self._require_low_power()
        self._send_control(MessageName.FRIEND_REQUEST.value, Address.broadcast())

    def _send_friend_established_internal(self) -> None:
        self._require_low_power()
        self._send_control("FRIEND_ESTABLISHED_INTERNAL", Address.broadcast())

    def _send_friend_poll(self) -> None:
        self._require_low_power()
        if self.connected_friend_node.is_unspecified():
            raise SimulationError("cannot poll without a friend node")
        self._send_control(MessageName.FRIEND_POLL.value, self.connected_friend_node)