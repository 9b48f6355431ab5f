"""Discrete-event scheduling, addresses, packets and a simulated UDP socket."""

from __future__ import annotations

import dataclasses
import heapq
import itertools
from dataclasses import dataclass, field
from typing import Callable, Iterable, NamedTuple

BROADCAST_ADDRESS = "255.255.255.255"
UUIDS_PER_SCALAR = 750


class SimulationError(RuntimeError):
    """Raised when a simulated component is used in a way the model forbids."""


@dataclass(frozen=True)
class Address:
    """A network-layer address; an empty value means unspecified."""

    value: str = ""

    @classmethod
    def broadcast(cls) -> "Address":
        return cls(BROADCAST_ADDRESS)

    def is_unspecified(self) -> bool:
        return not self.value

    def __str__(self) -> str:
        return self.value or "<unspec>"


@dataclass
class BMeshPacket:
    """Payload chunk of a mesh message."""

    chunk_length: int = 1
    hops: int = 0
    packet_uuid: str = ""
    src_uuid: str = ""
    sequence: int = 0
    creation_time: float = 0.0


@dataclass
class Packet:
    """A named datagram carrying an optional mesh payload."""

    name: str
    payload: BMeshPacket | None = None
    src: Address = field(default_factory=Address)
    dont_fragment: bool = False

    def dup(self) -> "Packet":
        """An independent copy of this packet and its payload."""
        payload = dataclasses.replace(self.payload) if self.payload is not None else None
        return dataclasses.replace(self, payload=payload)

    def byte_length(self) -> int:
        return self.payload.chunk_length if self.payload is not None else 0


@dataclass(eq=False)
class Timer:
    """A self-message; ``handler`` is called with the timer when it fires."""

    name: str
    handler: Callable[["Timer"], None] | None = None
    kind: int = 0


class Scheduler:
    """Orders timers by time, firing those at equal times in scheduling order."""

    def __init__(self) -> None:
        self.now = 0.0
        self._queue: list[tuple[float, int, Timer]] = []
        self._pending: dict[Timer, int] = {}
        self._counter = itertools.count()

    def schedule_at(self, time: float, timer: Timer) -> None:
        if timer in self._pending:
            raise SimulationError(f"timer {timer.name!r} is already scheduled")
        if time < self.now:
            raise SimulationError(f"cannot schedule {timer.name!r} in the past ({time} < {self.now})")
        order = next(self._counter)
        self._pending[timer] = order
        heapq.heappush(self._queue, (time, order, timer))

    def cancel(self, timer: Timer) -> None:
        """Unschedule ``timer``; does nothing if it is not scheduled."""
        self._pending.pop(timer, None)

    def is_scheduled(self, timer: Timer) -> bool:
        return timer in self._pending

    def _discard_cancelled(self) -> None:
        while self._queue:
            _, order, timer = self._queue[0]
            if self._pending.get(timer) == order:
                return
            heapq.heappop(self._queue)

    def next_time(self) -> float | None:
        self._discard_cancelled()
        return self._queue[0][0] if self._queue else None

    def step(self) -> Timer | None:
        """Fire the next timer and return it, or return None if nothing is scheduled."""
        self._discard_cancelled()
        if not self._queue:
            return None
        time, _, timer = heapq.heappop(self._queue)
        del self._pending[timer]
        self.now = time
        if timer.handler is not None:
            timer.handler(timer)
        return timer

    def run(self, until: float | None = None) -> int:
        """Fire timers up to and including ``until``; return how many fired."""
        fired = 0
        while True:
            upcoming = self.next_time()
            if upcoming is None or (until is not None and upcoming > until):
                break
            self.step()
            fired += 1
        if until is not None and until > self.now:
            self.now = until
        return fired


class SentDatagram(NamedTuple):
    packet: Packet
    dest: Address
    port: int


class UdpSocket:
    """Records what is sent through it; hooks let a network deliver packets."""

    def __init__(self) -> None:
        self.local_port: int | None = None
        self.broadcast = False
        self.closed = False
        self.sent: list[SentDatagram] = []
        self.on_send: Callable[[SentDatagram], None] | None = None
        self.on_closed: Callable[[], None] | None = None

    def bind(self, port: int) -> None:
        if self.closed:
            raise SimulationError("cannot bind a closed socket")
        self.local_port = port

    def send_to(self, packet: Packet, dest: Address, port: int) -> None:
        if self.closed:
            raise SimulationError("cannot send on a closed socket")
        datagram = SentDatagram(packet, dest, port)
        self.sent.append(datagram)
        if self.on_send is not None:
            self.on_send(datagram)

    def close(self) -> None:
        """Close the socket and report it to ``on_closed``."""
        self.closed = True
        if self.on_closed is not None:
            self.on_closed()

    def destroy(self) -> None:
        """Close the socket silently."""
        self.closed = True


def uuid_scalar_names(label: str, uuids: Iterable[str]) -> list[str]:
    """Scalar names listing ``uuids`` in sorted order, 750 per part."""
    ordered = sorted(uuids)
    chunks = [ordered[i:i + UUIDS_PER_SCALAR] for i in range(0, len(ordered), UUIDS_PER_SCALAR)] or [[]]
    names = []
    for page, chunk in enumerate(chunks, start=1):
        prefix = f"{label}-part{page}="
        names.append(prefix + ",".join(chunk) if chunk else prefix[:-1])
    return names