"""Low-level reader for the protobuf wire format used by pprof captures.

The reader is tolerant by construction: it never raises past
:meth:`WireReader.iter_fields`, which simply stops at the first truncated or
undefined field and leaves it to callers to decide whether what was read so
far is usable.

Classes
-------
WireReader
    Cursor over a byte buffer yielding ``(field_number, wire_type, value)``.

Functions
---------
to_int64
    Reinterpret an unsigned 64-bit varint as two's complement.
unpack_varints
    Decode a packed repeated-scalar payload.
"""

from __future__ import annotations

import logging
import struct
from typing import Iterator, Union

logger = logging.getLogger(__name__)

WIRE_VARINT = 0
WIRE_FIXED64 = 1
WIRE_LEN = 2
WIRE_FIXED32 = 5

_MAX_VARINT_BYTES = 10
_U64 = 1 << 64

FieldValue = Union[int, bytes]


class TruncatedInput(EOFError):
    """Raised internally when a read runs past the end of the buffer."""


class InvalidWireType(ValueError):
    """Raised internally for wire types 3, 4, 6 and 7."""


def to_int64(value: int) -> int:
    """Return ``value`` reinterpreted as a signed 64-bit integer."""

    value &= _U64 - 1
    return value - _U64 if value >= (1 << 63) else value


class WireReader:
    """Cursor over one protobuf message.

    Attributes
    ----------
    position : int
        Read-only offset of the next unread byte.
    """

    def __init__(self, data: bytes | bytearray | memoryview) -> None:
        self.m_data = memoryview(data)
        self.m_pos = 0

    @property
    def position(self) -> int:
        return self.m_pos

    def at_end(self) -> bool:
        return self.m_pos >= len(self.m_data)

    def read_varint(self) -> int:
        """Read a little-endian base-128 varint (7 data bits per byte)."""

        result = 0
        shift = 0
        for _ in range(_MAX_VARINT_BYTES):
            if self.m_pos >= len(self.m_data):
                raise TruncatedInput("varint runs past end of buffer")
            b = self.m_data[self.m_pos]
            self.m_pos += 1
            result |= (b & 0x7F) << shift
            if not b & 0x80:
                return result & (_U64 - 1)
            shift += 7
        raise TruncatedInput("varint longer than 10 bytes")

    def read_bytes(self, size: int) -> bytes:
        end = self.m_pos + size
        if end > len(self.m_data):
            raise TruncatedInput(f"need {size} bytes at offset {self.m_pos}, have {len(self.m_data) - self.m_pos}")
        out = self.m_data[self.m_pos : end].tobytes()
        self.m_pos = end
        return out

    def read_fixed64(self) -> int:
        return struct.unpack("<Q", self.read_bytes(8))[0]

    def read_fixed32(self) -> int:
        return struct.unpack("<I", self.read_bytes(4))[0]

    def read_field(self) -> tuple[int, int, FieldValue]:
        """Read one tagged field.

        Returns
        -------
        tuple[int, int, int or bytes]
            ``(field_number, wire_type, value)``; ``value`` is the raw payload
            for length-delimited fields and an unsigned integer otherwise.
        """

        tag = self.read_varint()
        field_number = tag >> 3
        wire_type = tag & 7
        if wire_type == WIRE_VARINT:
            return field_number, wire_type, self.read_varint()
        if wire_type == WIRE_FIXED64:
            return field_number, wire_type, self.read_fixed64()
        if wire_type == WIRE_LEN:
            size = self.read_varint()
            return field_number, wire_type, self.read_bytes(size)
        if wire_type == WIRE_FIXED32:
            return field_number, wire_type, self.read_fixed32()
        raise InvalidWireType(f"wire type {wire_type} (field {field_number}) at offset {self.m_pos}")

    def iter_fields(self, message: str = "message") -> Iterator[tuple[int, int, FieldValue]]:
        """Yield fields until the buffer ends or a field cannot be read.

        Parameters
        ----------
        message : str, default="message"
            Name used in debug logs when decoding stops early.
        """

        while not self.at_end():
            try:
                yield self.read_field()
            except (TruncatedInput, InvalidWireType) as exc:
                logger.debug("Stopped decoding %s early: %s", message, exc)
                return


def unpack_varints(payload: bytes) -> list[int]:
    """Decode a packed repeated-varint payload, keeping complete values only."""

    reader = WireReader(payload)
    out: list[int] = []
    while not reader.at_end():
        try:
            out.append(reader.read_varint())
        except TruncatedInput:
            logger.debug("Dropped truncated tail of packed varint field")
            break
    return out
