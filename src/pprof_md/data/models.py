"""Domain data models for aggregated profiles.

This module defines the `attrs`-based values produced by the aggregator and
the diff engine. They are frozen once constructed and may be converted to
plain dictionaries using the `cattrs` converter in
:mod:`pprof_md.contracts.convert`.

Classes
-------
Category
    Semantic kind of a capture (cpu, heap, goroutine, mutex).
Stats
    Category-specific summary counters.
CallPath
    One distinct stack observed for a function, with its weight.
Function
    Per-function row of the ranked metrics table.
Profile
    Aggregated result for one capture.
FunctionDiff
    Per-function delta between two profiles.
"""

from __future__ import annotations

from enum import Enum

from attrs import frozen, field
from attrs.validators import instance_of


class Category(str, Enum):
    """Semantic kind of a capture.

    Members compare equal to their literal tokens (``Category.CPU == "cpu"``).
    """

    CPU = "cpu"
    HEAP = "heap"
    GOROUTINE = "goroutine"
    MUTEX = "mutex"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, token: "Category | str") -> "Category":
        """Return the category for a literal token.

        Parameters
        ----------
        token : Category or str
            One of ``cpu``, ``heap``, ``goroutine``, ``mutex`` (case-insensitive).

        Raises
        ------
        ValueError
            If ``token`` names no category.
        """

        if isinstance(token, cls):
            return token
        try:
            return cls(str(token).strip().lower())
        except ValueError:
            allowed = ", ".join(c.value for c in cls)
            raise ValueError(f"invalid profile type {token!r} (expected one of: {allowed})") from None


def _category(value: "Category | str") -> Category:
    return Category.parse(value)


@frozen(kw_only=True)
class Stats:
    """Summary counters; only the fields of the profile's category are filled.

    Durations and contention times are in nanoseconds, ``sample_rate`` in Hz.
    """

    total_samples: int = field(default=0, validator=[instance_of(int)])
    duration_nanos: int = field(default=0, validator=[instance_of(int)])
    period: int = field(default=0, validator=[instance_of(int)])
    sample_rate: int = field(default=0, validator=[instance_of(int)])
    # heap
    alloc_bytes: int = field(default=0, validator=[instance_of(int)])
    alloc_objects: int = field(default=0, validator=[instance_of(int)])
    inuse_bytes: int = field(default=0, validator=[instance_of(int)])
    inuse_objects: int = field(default=0, validator=[instance_of(int)])
    # goroutine
    total_goroutines: int = field(default=0, validator=[instance_of(int)])
    # mutex
    total_contention_time: int = field(default=0, validator=[instance_of(int)])
    total_waits: int = field(default=0, validator=[instance_of(int)])
    sample_count: int = field(default=0, validator=[instance_of(int)])
    skipped_samples: int = field(default=0, validator=[instance_of(int)])


@frozen(kw_only=True)
class CallPath:
    """Distinct stack (leaf first) and the metric weight observed along it."""

    stack: tuple[str, ...] = field(converter=tuple)
    weight: int = field(validator=[instance_of(int)])


@frozen(kw_only=True)
class Function:
    """Row of the ranked per-function table.

    Parameters
    ----------
    name : str
        Display name of the function.
    file, line : str, int
        Source position of the first line observed for the function.
    flat : int
        Metric attributed while the function was the leaf frame.
    cum : int
        Metric of every sample whose stack contains the function.
    flat_pct, cum_pct : float
        ``flat``/``cum`` as a percentage of the profile total.
    sum_pct : float
        Running total of ``flat_pct`` down the ranked table.
    call_paths : tuple[CallPath, ...]
        Merged stacks ending at this function, heaviest first.
    """

    name: str = field(validator=[instance_of(str)])
    file: str = field(default="", validator=[instance_of(str)])
    line: int = field(default=0, validator=[instance_of(int)])
    flat: int = field(default=0, validator=[instance_of(int)])
    cum: int = field(default=0, validator=[instance_of(int)])
    flat_pct: float = field(default=0.0, validator=[instance_of(float)])
    cum_pct: float = field(default=0.0, validator=[instance_of(float)])
    sum_pct: float = field(default=0.0, validator=[instance_of(float)])
    call_paths: tuple[CallPath, ...] = field(factory=tuple, converter=tuple)

    @property
    def call_stack(self) -> tuple[str, ...]:
        """Stack of the heaviest call path, or an empty tuple."""

        if not self.call_paths:
            return ()
        return self.call_paths[0].stack


@frozen(kw_only=True)
class Profile:
    """Aggregated, ranked result for one capture."""

    category: Category = field(converter=_category)
    total_samples: int = field(default=0, validator=[instance_of(int)])
    stats: Stats = field(factory=Stats)
    functions: tuple[Function, ...] = field(factory=tuple, converter=tuple)

    def find(self, name: str) -> Function | None:
        """Return the function named ``name`` or None."""

        for fn in self.functions:
            if fn.name == name:
                return fn
        return None

    def top(self, n: int | None) -> tuple[Function, ...]:
        """Return the first ``n`` functions of the ranked table (all when None)."""

        if n is None:
            return self.functions
        return self.functions[: max(0, int(n))]


@frozen(kw_only=True)
class FunctionDiff:
    """Change of one function between a base and a new profile.

    ``is_improved`` and ``is_regressed`` are independent flags: both are set
    when flat and cum moved in opposite directions, neither when nothing
    changed.
    """

    name: str = field(validator=[instance_of(str)])
    file: str = field(default="")
    line: int = field(default=0)
    base_flat: int = field(default=0)
    base_cum: int = field(default=0)
    new_flat: int = field(default=0)
    new_cum: int = field(default=0)
    flat_delta: int = field(default=0)
    flat_delta_pct: float = field(default=0.0)
    cum_delta: int = field(default=0)
    cum_delta_pct: float = field(default=0.0)
    is_new: bool = field(default=False)
    is_removed: bool = field(default=False)
    is_improved: bool = field(default=False)
    is_regressed: bool = field(default=False)
