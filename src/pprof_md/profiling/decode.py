"""Binary decoder for pprof captures.

Reads an optionally gzip-wrapped ``profile.proto`` byte stream into a
:class:`~pprof_md.data.capture.Capture`. Decoding is best-effort: unknown
fields are skipped, and a truncated or undefined field ends decoding of the
message it appears in while keeping everything read before it. Only a broken
gzip envelope is fatal.

Functions
---------
decode
    Decode capture bytes into a ``Capture``.
maybe_gunzip
    Strip the optional gzip envelope.
"""

from __future__ import annotations

import gzip
import logging
import zlib
from typing import Callable

from pprof_md.data.capture import Capture, FunctionDef, Label, Line, Location, Mapping, Sample, ValueType
from pprof_md.profiling.errors import DecodeError
from pprof_md.profiling.wire import WIRE_LEN, WIRE_VARINT, FieldValue, WireReader, to_int64, unpack_varints

logger = logging.getLogger(__name__)

GZIP_MAGIC = b"\x1f\x8b"

# profile.proto field numbers (Profile message)
_SAMPLE_TYPE = 1
_SAMPLE = 2
_MAPPING = 3
_LOCATION = 4
_FUNCTION = 5
_STRING_TABLE = 6
_DROP_FRAMES = 7
_KEEP_FRAMES = 8
_TIME_NANOS = 9
_DURATION_NANOS = 10
_PERIOD_TYPE = 11
_PERIOD = 12
_COMMENT = 13
_DEFAULT_SAMPLE_TYPE = 14


def maybe_gunzip(data: bytes) -> bytes:
    """Return ``data`` decompressed when it carries a gzip header.

    Raises
    ------
    DecodeError
        If the gzip header is present but the stream cannot be decompressed.
    """

    if not data.startswith(GZIP_MAGIC):
        return data
    try:
        return gzip.decompress(data)
    except (OSError, EOFError, zlib.error) as exc:
        raise DecodeError(f"failed to decompress gzip capture: {exc}") from exc


def _repeated(wire_type: int, value: FieldValue) -> list[int]:
    """Values of a repeated scalar field, packed or not."""

    if wire_type == WIRE_VARINT:
        return [int(value)]  # type: ignore[arg-type]
    if wire_type == WIRE_LEN:
        return unpack_varints(value)  # type: ignore[arg-type]
    return []


def _varint(wire_type: int, value: FieldValue) -> int | None:
    return int(value) if wire_type == WIRE_VARINT else None  # type: ignore[arg-type]


class _StringResolver:
    """Resolve string-table indices once the whole table is known."""

    def __init__(self, table: list[str]) -> None:
        self.m_table = table

    def __call__(self, index: int) -> str:
        if 0 <= index < len(self.m_table):
            return self.m_table[index]
        return ""


# Raw (index-based) message decoders. Each returns a callable that builds the
# resolved record once the string table is complete.


def _decode_value_type(payload: bytes) -> Callable[[_StringResolver], ValueType]:
    type_idx = unit_idx = 0
    for num, wt, val in WireReader(payload).iter_fields("ValueType"):
        v = _varint(wt, val)
        if v is None:
            continue
        if num == 1:
            type_idx = v
        elif num == 2:
            unit_idx = v
    return lambda s: ValueType(type=s(type_idx), unit=s(unit_idx))


def _decode_label(payload: bytes) -> Callable[[_StringResolver], Label]:
    key = str_idx = unit_idx = 0
    num = 0
    for fnum, wt, val in WireReader(payload).iter_fields("Label"):
        v = _varint(wt, val)
        if v is None:
            continue
        if fnum == 1:
            key = v
        elif fnum == 2:
            str_idx = v
        elif fnum == 3:
            num = to_int64(v)
        elif fnum == 4:
            unit_idx = v
    return lambda s: Label(key=s(key), str_value=s(str_idx), num=num, num_unit=s(unit_idx))


def _decode_sample(payload: bytes) -> Callable[[_StringResolver], Sample]:
    location_ids: list[int] = []
    values: list[int] = []
    labels: list[Callable[[_StringResolver], Label]] = []
    for num, wt, val in WireReader(payload).iter_fields("Sample"):
        if num == 1:
            location_ids.extend(_repeated(wt, val))
        elif num == 2:
            values.extend(to_int64(v) for v in _repeated(wt, val))
        elif num == 3 and wt == WIRE_LEN:
            labels.append(_decode_label(val))  # type: ignore[arg-type]
    return lambda s: Sample(location_ids=location_ids, values=values, labels=[b(s) for b in labels])


def _decode_mapping(payload: bytes) -> Callable[[_StringResolver], Mapping]:
    f: dict[int, int] = {}
    for num, wt, val in WireReader(payload).iter_fields("Mapping"):
        v = _varint(wt, val)
        if v is not None:
            f[num] = v
    return lambda s: Mapping(
        id=f.get(1, 0),
        memory_start=f.get(2, 0),
        memory_limit=f.get(3, 0),
        file_offset=f.get(4, 0),
        filename=s(f.get(5, 0)),
        build_id=s(f.get(6, 0)),
        has_functions=bool(f.get(7, 0)),
        has_filenames=bool(f.get(8, 0)),
        has_line_numbers=bool(f.get(9, 0)),
        has_inline_frames=bool(f.get(10, 0)),
    )


def _decode_line(payload: bytes) -> Line:
    function_id = line = 0
    for num, wt, val in WireReader(payload).iter_fields("Line"):
        v = _varint(wt, val)
        if v is None:
            continue
        if num == 1:
            function_id = v
        elif num == 2:
            line = to_int64(v)
    return Line(function_id=function_id, line=line)


def _decode_location(payload: bytes) -> Location:
    loc = Location()
    for num, wt, val in WireReader(payload).iter_fields("Location"):
        if num == 4 and wt == WIRE_LEN:
            loc.lines.append(_decode_line(val))  # type: ignore[arg-type]
            continue
        v = _varint(wt, val)
        if v is None:
            continue
        if num == 1:
            loc.id = v
        elif num == 2:
            loc.mapping_id = v
        elif num == 3:
            loc.address = v
        elif num == 5:
            loc.is_folded = bool(v)
    return loc


def _decode_function(payload: bytes) -> Callable[[_StringResolver], FunctionDef]:
    f: dict[int, int] = {}
    for num, wt, val in WireReader(payload).iter_fields("Function"):
        v = _varint(wt, val)
        if v is not None:
            f[num] = v
    return lambda s: FunctionDef(
        id=f.get(1, 0),
        name=s(f.get(2, 0)),
        system_name=s(f.get(3, 0)),
        filename=s(f.get(4, 0)),
        start_line=to_int64(f.get(5, 0)),
    )


def decode(data: bytes | bytearray | memoryview) -> Capture:
    """Decode a pprof capture.

    Parameters
    ----------
    data : bytes-like
        Capture bytes, gzip-wrapped or raw ``profile.proto`` wire format.

    Returns
    -------
    Capture
        Everything that could be decoded. An input that is not a capture at
        all decodes to an (effectively) empty ``Capture``; emptiness is for
        downstream consumers to judge.

    Raises
    ------
    DecodeError
        If ``data`` is not bytes-like or its gzip envelope is corrupt.

    Examples
    --------
    >>> decode(b"").is_empty()
    True
    """

    if not isinstance(data, (bytes, bytearray, memoryview)):
        raise DecodeError(f"expected a bytes-like capture, got {type(data).__name__}")
    raw = maybe_gunzip(bytes(data))

    strings: list[str] = [""]
    sample_types: list[Callable[[_StringResolver], ValueType]] = []
    samples: list[Callable[[_StringResolver], Sample]] = []
    mappings: list[Callable[[_StringResolver], Mapping]] = []
    functions: list[Callable[[_StringResolver], FunctionDef]] = []
    locations: dict[int, Location] = {}
    period_type: Callable[[_StringResolver], ValueType] | None = None
    comments: list[int] = []
    scalars: dict[int, int] = {}
    seen_first_string = False

    for num, wt, val in WireReader(raw).iter_fields("Profile"):
        if wt == WIRE_LEN:
            payload: bytes = val  # type: ignore[assignment]
            if num == _SAMPLE_TYPE:
                sample_types.append(_decode_value_type(payload))
            elif num == _SAMPLE:
                samples.append(_decode_sample(payload))
            elif num == _MAPPING:
                mappings.append(_decode_mapping(payload))
            elif num == _LOCATION:
                loc = _decode_location(payload)
                locations[loc.id] = loc
            elif num == _FUNCTION:
                functions.append(_decode_function(payload))
            elif num == _STRING_TABLE:
                text = payload.decode("utf-8", errors="replace")
                # The table's own first entry is the mandatory empty string.
                if not seen_first_string and text == "":
                    seen_first_string = True
                    continue
                seen_first_string = True
                strings.append(text)
            elif num == _PERIOD_TYPE:
                period_type = _decode_value_type(payload)
            elif num == _COMMENT:
                comments.extend(unpack_varints(payload))
        elif wt == WIRE_VARINT:
            if num == _COMMENT:
                comments.append(int(val))  # type: ignore[arg-type]
            elif num in (_DROP_FRAMES, _KEEP_FRAMES, _TIME_NANOS, _DURATION_NANOS, _PERIOD, _DEFAULT_SAMPLE_TYPE):
                scalars[num] = to_int64(int(val))  # type: ignore[arg-type]

    s = _StringResolver(strings)
    func_defs = [b(s) for b in functions]
    capture = Capture(
        sample_types=[b(s) for b in sample_types],
        samples=[b(s) for b in samples],
        mappings=[b(s) for b in mappings],
        locations=locations,
        functions={fd.id: fd for fd in func_defs if fd.id != 0},
        string_table=strings,
        drop_frames=s(scalars.get(_DROP_FRAMES, 0)),
        keep_frames=s(scalars.get(_KEEP_FRAMES, 0)),
        time_nanos=scalars.get(_TIME_NANOS, 0),
        duration_nanos=scalars.get(_DURATION_NANOS, 0),
        period_type=period_type(s) if period_type is not None else None,
        period=scalars.get(_PERIOD, 0),
        comments=[s(i) for i in comments],
        default_sample_type=s(scalars.get(_DEFAULT_SAMPLE_TYPE, 0)),
    )
    logger.debug(
        "Decoded capture | bytes=%d sample_types=%d samples=%d locations=%d functions=%d strings=%d",
        len(raw),
        len(capture.sample_types),
        len(capture.samples),
        len(capture.locations),
        len(capture.functions),
        len(capture.string_table),
    )
    return capture
