"""Aggregate capture samples into a ranked per-function profile.

Functions
---------
aggregate
    Walk samples and stacks of a capture and build the category's ``Profile``.
merge_call_paths
    Merge call paths sharing an identical stack and sort them by weight.
sample_metric
    Interpret one sample's value vector for a category.
"""

from __future__ import annotations

import logging
from typing import Callable, Iterable, Sequence

from attrs import define, evolve, field

from pprof_md.data.capture import Capture, FunctionDef, Sample
from pprof_md.data.models import CallPath, Category, Function, Profile, Stats
from pprof_md.profiling.errors import MalformedSampleError

logger = logging.getLogger(__name__)

NANOS_PER_SECOND = 1_000_000_000


@define
class _Totals:
    """Running category counters for one aggregation."""

    total: int = 0
    alloc_bytes: int = 0
    alloc_objects: int = 0
    inuse_bytes: int = 0
    inuse_objects: int = 0
    goroutines: int = 0
    contention_time: int = 0
    waits: int = 0


def _read_cpu(values: Sequence[int], scale: int, acc: _Totals) -> int:
    metric = values[0] * scale
    acc.total += metric
    return metric


def _read_heap(values: Sequence[int], scale: int, acc: _Totals) -> int:
    acc.alloc_objects += values[0]
    acc.alloc_bytes += values[1]
    if len(values) >= 3:
        acc.inuse_objects += values[2]
    if len(values) >= 4:
        acc.inuse_bytes += values[3]
    acc.total += values[1]
    return values[1]


def _read_goroutine(values: Sequence[int], scale: int, acc: _Totals) -> int:
    acc.goroutines += values[0]
    acc.total += values[0]
    return values[0]


def _read_mutex(values: Sequence[int], scale: int, acc: _Totals) -> int:
    acc.waits += values[0]
    acc.contention_time += values[1]
    acc.total += values[1]
    return values[1]


SampleReader = Callable[[Sequence[int], int, _Totals], int]

# Minimum value-vector length and reader per category.
_READERS: dict[Category, tuple[int, SampleReader]] = {
    Category.CPU: (1, _read_cpu),
    Category.HEAP: (2, _read_heap),
    Category.GOROUTINE: (1, _read_goroutine),
    Category.MUTEX: (2, _read_mutex),
}


def sample_metric(category: Category, index: int, sample: Sample, scale: int, acc: _Totals) -> int:
    """Return the primary metric of ``sample`` and update ``acc``.

    Raises
    ------
    MalformedSampleError
        If the value vector is shorter than ``category`` requires.
    """

    required, reader = _READERS[category]
    if len(sample.values) < required:
        raise MalformedSampleError(index, category.value, sample.values, required)
    return reader(sample.values, scale, acc)


@define
class _FunctionData:
    """Per-function accumulator."""

    name: str
    file: str
    line: int
    flat: int = 0
    cum: int = 0
    call_paths: list[CallPath] = field(factory=list)


def merge_call_paths(paths: Iterable[CallPath]) -> list[CallPath]:
    """Merge paths with identical stacks and sort by weight, heaviest first.

    Ties keep first-seen order, so merging an already merged list returns it
    unchanged.

    Examples
    --------
    >>> merged = merge_call_paths([CallPath(stack=("a", "b"), weight=1), CallPath(stack=("a", "b"), weight=2)])
    >>> merged[0].weight
    3
    """

    weights: dict[tuple[str, ...], int] = {}
    for p in paths:
        weights[p.stack] = weights.get(p.stack, 0) + p.weight
    merged = [CallPath(stack=stack, weight=w) for stack, w in weights.items()]
    merged.sort(key=lambda cp: cp.weight, reverse=True)
    return merged


def _frames(capture: Capture, sample: Sample) -> list[tuple[FunctionDef, int, int]]:
    """Resolved ``(function, line, location_index)`` frames, leaf first."""

    out: list[tuple[FunctionDef, int, int]] = []
    for idx, loc_id in enumerate(sample.location_ids):
        loc = capture.lookup_location(loc_id)
        if loc is None:
            continue
        for ln in loc.lines:
            fn = capture.lookup_function(ln.function_id)
            if fn is not None:
                out.append((fn, ln.line, idx))
    return out


def _pct(value: int, total: int) -> float:
    return float(value) / float(total) * 100.0 if total > 0 else 0.0


def aggregate(capture: Capture, category: Category | str) -> Profile:
    """Build the ranked profile of ``capture`` for ``category``.

    Parameters
    ----------
    capture : Capture
        Decoded capture.
    category : Category or str
        Category that decides how sample values are read.

    Returns
    -------
    Profile
        Functions sorted by ``flat`` descending (ties by name), with
        percentages against the category total and running ``sum_pct``.

    Notes
    -----
    The leaf is ``location_ids[0]`` and, within it, the innermost inlined
    line; only that frame receives ``flat`` and a call path. ``cum`` is
    credited at most once per function per sample, so recursion does not
    inflate it. Functions are keyed by display name, so two function ids
    sharing a name land in one row. Samples with a short value vector are
    skipped and counted in ``stats.skipped_samples``.
    """

    category = Category.parse(category)
    scale = 1
    if category is Category.CPU:
        if capture.period > 0:
            scale = capture.period
        else:
            logger.debug("CPU capture declares no period; using unscaled sample counts")

    acc = _Totals()
    data: dict[str, _FunctionData] = {}
    aggregated = 0
    skipped = 0

    for index, sample in enumerate(capture.samples):
        try:
            metric = sample_metric(category, index, sample, scale, acc)
        except MalformedSampleError as exc:
            skipped += 1
            logger.debug("Skipping sample: %s", exc)
            continue
        aggregated += 1

        frames = _frames(capture, sample)
        stack = tuple(fn.display_name for fn, _, _ in frames if fn.display_name)
        seen: set[str] = set()
        for pos, (fn, line_no, loc_index) in enumerate(frames):
            entry = data.get(fn.display_name)
            if entry is None:
                entry = _FunctionData(
                    name=fn.display_name,
                    file=fn.filename,
                    line=line_no or fn.start_line,
                )
                data[fn.display_name] = entry
            if pos == 0 and loc_index == 0:
                entry.flat += metric
                entry.call_paths.append(CallPath(stack=stack, weight=metric))
            if fn.display_name not in seen:
                seen.add(fn.display_name)
                entry.cum += metric

    if skipped:
        logger.warning("Skipped %d malformed %s sample(s) out of %d", skipped, category.value, len(capture.samples))

    total = acc.total
    functions = [
        Function(
            name=d.name,
            file=d.file,
            line=d.line,
            flat=d.flat,
            cum=d.cum,
            flat_pct=_pct(d.flat, total),
            cum_pct=_pct(d.cum, total),
            call_paths=merge_call_paths(d.call_paths),
        )
        for d in data.values()
    ]
    functions.sort(key=lambda f: (-f.flat, f.name))

    ranked: list[Function] = []
    running = 0.0
    for fn in functions:
        running += fn.flat_pct
        ranked.append(evolve(fn, sum_pct=running))

    sample_rate = 0
    if category is Category.CPU and capture.period > 0:
        sample_rate = NANOS_PER_SECOND // capture.period

    stats = Stats(
        total_samples=total,
        duration_nanos=capture.duration_nanos,
        period=capture.period,
        sample_rate=sample_rate,
        alloc_bytes=acc.alloc_bytes,
        alloc_objects=acc.alloc_objects,
        inuse_bytes=acc.inuse_bytes,
        inuse_objects=acc.inuse_objects,
        total_goroutines=acc.goroutines,
        total_contention_time=acc.contention_time,
        total_waits=acc.waits,
        sample_count=aggregated,
        skipped_samples=skipped,
    )
    logger.debug(
        "Aggregated %s profile | samples=%d functions=%d total=%d",
        category.value,
        aggregated,
        len(ranked),
        total,
    )
    return Profile(category=category, total_samples=total, stats=stats, functions=ranked)
