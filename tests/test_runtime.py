import pytest

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


def test_address_unspecified():
    assert Address().is_unspecified()
    assert not Address.broadcast().is_unspecified()
    assert str(Address.broadcast()) == "255.255.255.255"


def test_packet_dup_is_independent():
    original = Packet("DATA_SEND", BMeshPacket(chunk_length=11, sequence=3))
    copy = original.dup()
    copy.payload.sequence = 9
    assert original.payload.sequence == 3
    assert copy.name == original.name
    assert copy.byte_length() == original.byte_length() == 11


def test_packet_without_payload_has_zero_length():
    assert Packet("x").byte_length() == 0


def test_scheduler_fires_in_time_order():
    scheduler = Scheduler()
    fired = []
    a = Timer("a", lambda t: fired.append((t.name, scheduler.now)))
    b = Timer("b", lambda t: fired.append((t.name, scheduler.now)))
    scheduler.schedule_at(2.0, a)
    scheduler.schedule_at(1.0, b)
    assert scheduler.run() == 2
    assert fired == [("b", 1.0), ("a", 2.0)]


def test_scheduler_equal_times_keep_order():
    scheduler = Scheduler()
    timers = [Timer(str(i)) for i in range(3)]
    for timer in timers:
        scheduler.schedule_at(1.0, timer)
    assert [scheduler.step() for _ in range(3)] == timers
    assert scheduler.step() is None


def test_cancel_and_reschedule():
    scheduler = Scheduler()
    timer = Timer("t")
    scheduler.schedule_at(1.0, timer)
    scheduler.cancel(timer)
    assert not scheduler.is_scheduled(timer)
    scheduler.schedule_at(3.0, timer)
    assert scheduler.step() is timer
    assert scheduler.now == 3.0


def test_double_schedule_and_past_raise():
    scheduler = Scheduler()
    timer = Timer("t")
    scheduler.schedule_at(1.0, timer)
    with pytest.raises(SimulationError):
        scheduler.schedule_at(2.0, timer)
    scheduler.run()
    with pytest.raises(SimulationError):
        scheduler.schedule_at(0.5, Timer("late"))


def test_run_until_stops_and_advances_clock():
    scheduler = Scheduler()
    late = Timer("late")
    scheduler.schedule_at(10.0, late)
    assert scheduler.run(until=5.0) == 0
    assert scheduler.now == 5.0
    assert scheduler.is_scheduled(late)


def test_socket_records_and_closes():
    socket = UdpSocket()
    closed = []
    socket.on_closed = lambda: closed.append(True)
    packet = Packet("p")
    socket.send_to(packet, Address.broadcast(), 1000)
    assert socket.sent[0].packet is packet
    assert socket.sent[0].port == 1000
    socket.close()
    assert closed == [True]
    with pytest.raises(SimulationError):
        socket.send_to(packet, Address.broadcast(), 1000)


def test_destroy_is_silent():
    socket = UdpSocket()
    socket.on_closed = lambda: pytest.fail("callback must not run")
    socket.destroy()
    assert socket.closed


def test_uuid_scalar_names_empty():
    assert uuid_scalar_names("received packet uuids", []) == ["received packet uuids-part1"]


def test_uuid_scalar_names_sorted_and_paged():
    uuids = [f"u{i:04d}" for i in range(751)]
    names = uuid_scalar_names("generated packet uuids", reversed(uuids))
    assert len(names) == 2
    first = names[0].split("=", 1)[1].split(",")
    assert first == uuids[:750]
    assert names[1] == "generated packet uuids-part2=" + uuids[750]