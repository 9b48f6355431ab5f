# mamsim

A small discrete-event model of a Bluetooth Mesh sensor network in which a
mobile data collector (sink) broadcasts discovery beacons and sensor nodes
send their readings towards it. Nodes can relay in a sink-aware mode
(`RelayMode.MAM`) or by plain mesh flooding (`RelayMode.BMESH`), and
low-power nodes can form friendships with friend nodes.

The package has no dependencies beyond the standard library.

## Installation

```
pip install .
```

For the tests:

```
pip install ".[test]"
pytest
```

## Modules

- `mamsim.lrucache.LruCache`: a bounded least-recently-used cache. Each
  entry carries an expiry; `exists(key, time)` is true only while `time` is
  below it, and `get(key)` raises `KeyError` for a missing key. Relay nodes
  use it to drop packets they forwarded within the last second.
- `mamsim.md5`: the `MD5` digest class (`update`, `finalize`, `hexdigest`,
  `digest`) and `md5(text)`, which returns the hexadecimal digest of text or
  bytes.
- `mamsim.antenna`: `DipoleAntennaGain`, whose `compute_gain(direction)`
  gives the linear gain of a dipole of given length and wavelength towards a
  unit vector, and `DipoleAntenna`, configured with gains in decibels, with
  `describe(level)`. Also `db_to_fraction` and `parse_coord` (an axis name
  such as `"z"` or three comma-separated numbers).
- `mamsim.runtime`: the event `Scheduler` (`schedule_at`, `cancel`,
  `is_scheduled`, `step`, `run`), `Timer`, `Packet`, `BMeshPacket`,
  `Address`, an in-memory `UdpSocket` that records sent datagrams and calls an
  optional `on_send` hook, `uuid_scalar_names`, and `SimulationError`.
- `mamsim.sensor.MobileSensorNode`: a sensor that sets `should_send_a_msg`
  when a message arrives and numbers its outgoing payloads from 0.
- `mamsim.collector.DataCollectorApp`: the mobile sink. It broadcasts
  `MAMCDISCOVERY` at a fixed interval until its stop time, counts unique and
  repeated 11-byte data packets, records delays, and passes each new packet
  to an optional `forward` callable. `finish()` returns the end-of-run
  scalars.
- `mamsim.ids`: `generate_uuid_v4` and `generate_hex`, taking an optional
  `random.Random` for reproducible runs.
- `mamsim.nodebase`: `NodeConfig`, `RelayMode`, `MessageName` and
  `MamNodeBase`, the node state and message-sending primitives.
- `mamsim.nodeapp.MamNodeApp`: the sensor node application, with `start()`,
  `handle_timer(timer)` and `receive(packet)`.

## Example

```python
from mamsim.md5 import md5
from mamsim.lrucache import LruCache

print(md5("FOUND_MOBILE_SINK_10.0.0.1"))

cache = LruCache(100)
cache.put("packet-1", 1, 1000)  # expires at t = 1000 ms
assert cache.exists("packet-1", 500)
assert not cache.exists("packet-1", 1500)
```

A simulation is driven by a `Scheduler`. Create the applications with it,
call their `start()` method, connect the sockets, then call
`scheduler.run(until)`:

```python
import dataclasses

from mamsim.collector import DataCollectorApp
from mamsim.nodeapp import MamNodeApp
from mamsim.nodebase import NodeConfig
from mamsim.runtime import Address, Scheduler

scheduler = Scheduler()
sink = DataCollectorApp(scheduler, local_port=1000, dest_port=1000, discovery_interval=1.0)
node = MamNodeApp(scheduler, NodeConfig(local_port=1000, dest_port=1000), name="sensor-1")

sink_address = Address("10.0.0.1")
sink.socket.on_send = lambda datagram: node.receive(
    dataclasses.replace(datagram.packet, src=sink_address)
)

sink.start()
scheduler.run(3.0)

assert sink.num_sent_discovery == 3
assert node.mobile_sink == sink_address
```

## What it does not do

There is no network or radio model: sockets only record what is sent, and
delivering a packet from one application to another is up to the caller,
through `UdpSocket.on_send` and `receive`. Nodes do not move, the antenna
gain is not applied to any transmission, and there is no command-line
program; the package is used as a library.