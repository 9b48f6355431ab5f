"""Discrete-event model of a Bluetooth Mesh sensor network with mobile data sinks."""

__version__ = "0.1.0"

__all__ = [
    "antenna",
    "collector",
    "ids",
    "lrucache",
    "md5",
    "nodeapp",
    "nodebase",
    "runtime",
    "sensor",
]