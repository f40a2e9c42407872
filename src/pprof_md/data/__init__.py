"""Domain models for ``pprof_md``.

This package hosts the attrs-based capture records produced by the decoder
and the frozen aggregate values produced by the aggregator and diff engine.
"""

from __future__ import annotations

from .capture import Capture, FunctionDef, Label, Line, Location, Mapping, Sample, ValueType
from .models import CallPath, Category, Function, FunctionDiff, Profile, Stats

__all__ = [
    # Decoder output
    "Capture",
    "FunctionDef",
    "Label",
    "Line",
    "Location",
    "Mapping",
    "Sample",
    "ValueType",
    # Aggregates
    "CallPath",
    "Category",
    "Function",
    "FunctionDiff",
    "Profile",
    "Stats",
]
