"""A mobile sensor node that answers every received message."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from mamsim.runtime import Packet

logger = logging.getLogger(__name__)


@dataclass
class WayPoint:
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0


class MobileSensorNode:
    """Sensor that flags a reply whenever a message arrives."""

    def __init__(self, node_id: int) -> None:
        self.internal_mob_node_id = node_id
        self.sent_msgs = -1
        self.should_send_a_msg = False
        logger.info(
            "Sensor initialization of internalMobNodeId %d Class %s.",
            node_id,
            type(self).__name__,
        )

    def process_message(self, packet: Packet) -> bool:
        """Note the message and request a reply."""
        logger.info("Sensor-%d received: %s", self.internal_mob_node_id, packet.name)
        self.should_send_a_msg = True
        return True

    def next_payload(self) -> str:
        """Text of the next message to send; numbering starts at 0."""
        self.sent_msgs += 1
        return f"Hi from Sensor-{self.internal_mob_node_id}{{{self.sent_msgs}}}\n"