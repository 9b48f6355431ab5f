"""Random identifiers: version-4 style UUID strings and hex strings."""

from __future__ import annotations

import random
from typing import Protocol


class _RandomSource(Protocol):
    def randint(self, a: int, b: int) -> int: ...


def _hex_digits(count: int, rng: _RandomSource) -> str:
    return "".join(format(rng.randint(0, 15), "x") for _ in range(count))


def generate_uuid_v4(rng: _RandomSource | None = None) -> str:
    """A random UUID string with version digit 4 and variant digit 8 to b."""
    source = rng if rng is not None else random.Random()
    variant = format(source.randint(8, 11), "x")
    parts = (
        _hex_digits(8, source),
        _hex_digits(4, source),
        "4" + _hex_digits(3, source),
        variant + _hex_digits(3, source),
        _hex_digits(12, source),
    )
    return "-".join(parts)


def generate_hex(length: int, rng: _RandomSource | None = None) -> str:
    """Hex text of ``length`` random bytes, two lower-case digits per byte."""
    if length < 0:
        raise ValueError("length must not be negative")
    source = rng if rng is not None else random.Random()
    return "".join(format(source.randint(0, 255), "02x") for _ in range(length))