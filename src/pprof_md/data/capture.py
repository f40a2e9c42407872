"""Generic capture records produced by the binary decoder.

This module defines `attrs`-based records mirroring the pprof wire format
messages with string-table indices already resolved to strings. They carry no
profiling semantics; see :mod:`pprof_md.profiling.aggregate` for that.

Classes
-------
ValueType
    (type, unit) pair naming one metric of a sample value vector.
Label
    Key/value annotation attached to a sample.
Mapping
    Binary mapping a location's address belongs to.
Line
    One (possibly inlined) source line of a location.
Location
    Stack frame address with one or more source lines.
FunctionDef
    Function metadata referenced by lines.
Sample
    Weighted call stack.
Capture
    One decoded profiling snapshot.
"""

from __future__ import annotations

from typing import Optional

from attrs import define, field
from attrs.validators import instance_of


@define(kw_only=True)
class ValueType:
    """Metric declaration such as ``("alloc_space", "bytes")``."""

    type: str = field(default="", validator=[instance_of(str)])
    unit: str = field(default="", validator=[instance_of(str)])

    def as_tuple(self) -> tuple[str, str]:
        return self.type, self.unit


@define(kw_only=True)
class Label:
    """Sample label; either ``str_value`` or ``num`` is meaningful."""

    key: str = field(default="")
    str_value: str = field(default="")
    num: int = field(default=0)
    num_unit: str = field(default="")


@define(kw_only=True)
class Mapping:
    """Binary mapping record."""

    id: int = field(default=0)
    memory_start: int = field(default=0)
    memory_limit: int = field(default=0)
    file_offset: int = field(default=0)
    filename: str = field(default="")
    build_id: str = field(default="")
    has_functions: bool = field(default=False)
    has_filenames: bool = field(default=False)
    has_line_numbers: bool = field(default=False)
    has_inline_frames: bool = field(default=False)


@define(kw_only=True)
class Line:
    """Source line of a location.

    Parameters
    ----------
    function_id : int
        Id of the :class:`FunctionDef` this line belongs to; ``0`` means none.
    line : int
        Source line number, ``0`` when unknown.
    """

    function_id: int = field(default=0, validator=[instance_of(int)])
    line: int = field(default=0, validator=[instance_of(int)])


@define(kw_only=True)
class Location:
    """Stack frame.

    When the compiler inlined calls at this address, ``lines`` holds several
    entries; ``lines[0]`` is the innermost one and the last entry is the
    caller the others were inlined into.
    """

    id: int = field(default=0, validator=[instance_of(int)])
    mapping_id: int = field(default=0)
    address: int = field(default=0)
    lines: list[Line] = field(factory=list)
    is_folded: bool = field(default=False)


@define(kw_only=True)
class FunctionDef:
    """Function metadata."""

    id: int = field(default=0, validator=[instance_of(int)])
    name: str = field(default="", validator=[instance_of(str)])
    system_name: str = field(default="", validator=[instance_of(str)])
    filename: str = field(default="", validator=[instance_of(str)])
    start_line: int = field(default=0, validator=[instance_of(int)])

    @property
    def display_name(self) -> str:
        """Human-readable name, falling back to the linker name."""

        return self.name or self.system_name


@define(kw_only=True)
class Sample:
    """Weighted call stack.

    ``location_ids[0]`` is the leaf (innermost) frame; ``values`` follows the
    order of :attr:`Capture.sample_types`.
    """

    location_ids: list[int] = field(factory=list)
    values: list[int] = field(factory=list)
    labels: list[Label] = field(factory=list)


@define(kw_only=True)
class Capture:
    """One decoded profiling snapshot.

    Attributes
    ----------
    sample_types : list[ValueType]
        Metric declarations, in value-vector order.
    samples : list[Sample]
        Samples in stream order.
    locations : dict[int, Location]
        Locations keyed by id.
    functions : dict[int, FunctionDef]
        Functions keyed by id (ids are non-zero).
    string_table : list[str]
        Raw string table; index 0 is always ``""``.
    period : int
        Sampling period in ``period_type`` units (nanoseconds for CPU).
    """

    sample_types: list[ValueType] = field(factory=list)
    samples: list[Sample] = field(factory=list)
    mappings: list[Mapping] = field(factory=list)
    locations: dict[int, Location] = field(factory=dict)
    functions: dict[int, FunctionDef] = field(factory=dict)
    string_table: list[str] = field(factory=lambda: [""])
    drop_frames: str = field(default="")
    keep_frames: str = field(default="")
    time_nanos: int = field(default=0)
    duration_nanos: int = field(default=0)
    period_type: Optional[ValueType] = field(default=None)
    period: int = field(default=0)
    comments: list[str] = field(factory=list)
    default_sample_type: str = field(default="")

    @property
    def period_type_name(self) -> str:
        return self.period_type.type if self.period_type is not None else ""

    def is_empty(self) -> bool:
        """Return True when nothing usable was decoded."""

        return not self.sample_types and not self.samples and not self.functions

    def lookup_location(self, location_id: int) -> Optional[Location]:
        return self.locations.get(location_id)

    def lookup_function(self, function_id: int) -> Optional[FunctionDef]:
        if function_id == 0:
            return None
        return self.functions.get(function_id)
