"""MD5 message digest, computed incrementally over bytes or text."""

from __future__ import annotations

import math
import struct

_MASK = 0xFFFFFFFF
_BLOCK = 64

_SHIFTS = (7, 12, 17, 22) * 4 + (5, 9, 14, 20) * 4 + (4, 11, 16, 23) * 4 + (6, 10, 15, 21) * 4
_CONSTANTS = tuple(int(abs(math.sin(i + 1)) * 2**32) & _MASK for i in range(64))
_INITIAL_STATE = (0x67452301, 0xEFCDAB89, 0x98BADCFE, 0x10325476)


def _rotate_left(value: int, amount: int) -> int:
    return ((value << amount) | (value >> (32 - amount))) & _MASK


def _as_bytes(data: bytes | bytearray | memoryview | str) -> bytes:
    if isinstance(data, str):
        return data.encode("utf-8")
    return bytes(data)


class MD5:
    """Feed data with :meth:`update`, then :meth:`finalize` and read :meth:`hexdigest`."""

    def __init__(self, text: bytes | str | None = None) -> None:
        self._state = list(_INITIAL_STATE)
        self._buffer = b""
        self._length = 0
        self._digest = b""
        self._finalized = False
        if text is not None:
            self.update(text)
            self.finalize()

    def update(self, data: bytes | bytearray | memoryview | str) -> "MD5":
        """Add more data to the digest."""
        if self._finalized:
            raise ValueError("cannot update a finalized digest")
        self._consume(_as_bytes(data))
        return self

    def _consume(self, data: bytes) -> None:
        self._length += len(data)
        pending = self._buffer + data
        whole = len(pending) - len(pending) % _BLOCK
        for offset in range(0, whole, _BLOCK):
            self._transform(pending[offset:offset + _BLOCK])
        self._buffer = pending[whole:]

    def _transform(self, block: bytes) -> None:
        words = struct.unpack("<16I", block)
        a, b, c, d = self._state
        for step in range(64):
            if step < 16:
                mixed = (b & c) | (~b & d)
                index = step
            elif step < 32:
                mixed = (b & d) | (c & ~d)
                index = (5 * step + 1) % 16
            elif step < 48:
                mixed = b ^ c ^ d
                index = (3 * step + 5) % 16
            else:
                mixed = c ^ (b | ~d)
                index = (7 * step) % 16
            total = (a + (mixed & _MASK) + words[index] + _CONSTANTS[step]) & _MASK
            a, d, c, b = d, c, b, (b + _rotate_left(total, _SHIFTS[step])) & _MASK
        self._state = [(old + new) & _MASK for old, new in zip(self._state, (a, b, c, d))]

    def finalize(self) -> "MD5":
        """Complete the digest; calling it again has no further effect."""
        if not self._finalized:
            bit_length = (self._length * 8) & 0xFFFFFFFFFFFFFFFF
            index = self._length % _BLOCK
            pad_length = 56 - index if index < 56 else 120 - index
            self._consume(b"\x80" + b"\x00" * (pad_length - 1))
            self._consume(struct.pack("<Q", bit_length))
            self._digest = struct.pack("<4I", *self._state)
            self._buffer = b""
            self._finalized = True
        return self

    @property
    def digest(self) -> bytes:
        """The raw 16-byte digest, empty until finalized."""
        return self._digest

    def hexdigest(self) -> str:
        """Lower-case hex digest, or an empty string if not yet finalized."""
        return self._digest.hex() if self._finalized else ""

    def __str__(self) -> str:
        return self.hexdigest()


def md5(text: bytes | str) -> str:
    """Hex MD5 digest of ``text``."""
    return MD5(text).hexdigest()