import pytest

from pprof_md.data.capture import Capture, FunctionDef, Line, Location, Sample, ValueType
from pprof_md.data.models import CallPath, Category
from pprof_md.profiling.aggregate import aggregate, merge_call_paths
from pprof_md.profiling.decode import decode
from pprof_md.profiling.diff import diff

from pprof_fixtures import CaptureBuilder, cpu_builder, heap_builder


def _heap2() -> CaptureBuilder:
    b = CaptureBuilder()
    b.sample_type("alloc_objects", "count").sample_type("alloc_space", "bytes")
    return b


def test_heap_single_sample_attribution():
    cap = decode(_heap2().sample(["main.alloc", "main.main"], [10, 80000]).build())
    prof = aggregate(cap, Category.HEAP)

    assert prof.total_samples == 80000
    assert prof.stats.alloc_bytes == 80000
    assert prof.stats.alloc_objects == 10
    assert prof.stats.inuse_bytes == 0
    assert [f.name for f in prof.functions] == ["main.alloc", "main.main"]

    leaf, root = prof.functions
    assert (leaf.flat, leaf.cum) == (80000, 80000)
    assert leaf.flat_pct == pytest.approx(100.0)
    assert leaf.sum_pct == pytest.approx(100.0)
    assert (root.flat, root.cum) == (0, 80000)
    assert root.cum_pct == pytest.approx(100.0)
    assert leaf.call_paths == (CallPath(stack=("main.alloc", "main.main"), weight=80000),)
    assert root.call_paths == ()


def test_heap_with_inuse_values_fills_inuse_stats():
    cap = decode(heap_builder().sample(["main.alloc"], [10, 80000, 2, 4096]).build())
    prof = aggregate(cap, "heap")
    assert prof.stats.inuse_objects == 2
    assert prof.stats.inuse_bytes == 4096
    assert prof.total_samples == 80000


def test_cpu_scaled_by_period_with_running_sum():
    b = cpu_builder(period=10_000_000)
    b.duration(2_000_000_000)
    b.sample(["main.compute", "main.main"], [3, 30_000_000])
    b.sample(["main.parse", "main.main"], [1, 10_000_000])
    prof = aggregate(decode(b.build()), Category.CPU)

    assert prof.total_samples == 40_000_000
    assert prof.stats.sample_rate == 100
    assert prof.stats.duration_nanos == 2_000_000_000
    assert prof.stats.sample_count == 2
    names = [f.name for f in prof.functions]
    assert names == ["main.compute", "main.parse", "main.main"]
    assert [f.flat_pct for f in prof.functions] == pytest.approx([75.0, 25.0, 0.0])
    assert [f.sum_pct for f in prof.functions] == pytest.approx([75.0, 100.0, 100.0])
    assert prof.find("main.main").cum == 40_000_000


def test_cpu_without_period_uses_raw_counts():
    b = CaptureBuilder().sample_type("samples", "count").sample_type("cpu", "nanoseconds")
    b.sample(["a.f"], [4, 0])
    prof = aggregate(decode(b.build()), Category.CPU)
    assert prof.total_samples == 4
    assert prof.stats.sample_rate == 0


def test_ties_are_ordered_by_name():
    b = cpu_builder(period=1)
    b.sample(["pkg.zeta"], [5, 0])
    b.sample(["pkg.alpha"], [5, 0])
    prof = aggregate(decode(b.build()), Category.CPU)
    assert [f.name for f in prof.functions] == ["pkg.alpha", "pkg.zeta"]


def test_recursion_credits_cum_once_per_sample():
    b = cpu_builder(period=1)
    b.sample(["main.fib", "main.fib", "main.fib", "main.main"], [7, 0])
    prof = aggregate(decode(b.build()), Category.CPU)
    fib = prof.find("main.fib")
    assert fib is not None
    assert fib.flat == 7
    assert fib.cum == 7
    assert fib.cum_pct == pytest.approx(100.0)


def test_inlined_frames_flat_goes_to_innermost():
    b = cpu_builder(period=1)
    loc = b.inline_location(["pkg.inner", "pkg.outer"])
    b.sample([loc, "main.main"], [2, 0])
    prof = aggregate(decode(b.build()), Category.CPU)
    inner, outer = prof.find("pkg.inner"), prof.find("pkg.outer")
    assert (inner.flat, inner.cum) == (2, 2)
    assert (outer.flat, outer.cum) == (0, 2)
    assert inner.call_stack == ("pkg.inner", "pkg.outer", "main.main")


def test_short_samples_are_skipped_and_counted():
    b = _heap2()
    b.sample(["main.alloc"], [1, 100])
    b.sample(["main.alloc"], [1])
    prof = aggregate(decode(b.build()), Category.HEAP)
    assert prof.stats.skipped_samples == 1
    assert prof.stats.sample_count == 1
    assert prof.total_samples == 100


def test_mutex_totals():
    b = CaptureBuilder().sample_type("contentions", "count").sample_type("delay", "nanoseconds")
    b.sample(["sync.Lock", "main.main"], [3, 1500])
    prof = aggregate(decode(b.build()), Category.MUTEX)
    assert prof.stats.total_waits == 3
    assert prof.stats.total_contention_time == 1500
    assert prof.functions[0].name == "sync.Lock"


def test_goroutine_totals():
    b = CaptureBuilder().sample_type("goroutine", "count")
    b.sample(["runtime.gopark", "main.worker"], [12])
    prof = aggregate(decode(b.build()), Category.GOROUTINE)
    assert prof.stats.total_goroutines == 12
    assert prof.total_samples == 12


def test_identical_stacks_merge_into_one_call_path():
    b = cpu_builder(period=1)
    b.sample(["a.f", "main.main"], [1, 0])
    b.sample(["a.f", "main.main"], [2, 0])
    b.sample(["a.f", "b.g"], [5, 0])
    prof = aggregate(decode(b.build()), Category.CPU)
    paths = prof.find("a.f").call_paths
    assert [p.weight for p in paths] == [5, 3]


def test_merge_call_paths_is_idempotent():
    paths = [
        CallPath(stack=("x",), weight=1),
        CallPath(stack=("y",), weight=4),
        CallPath(stack=("x",), weight=3),
        CallPath(stack=("z",), weight=4),
    ]
    once = merge_call_paths(paths)
    assert [(p.stack, p.weight) for p in once] == [(("x",), 4), (("y",), 4), (("z",), 4)]
    assert merge_call_paths(once) == once


def test_empty_capture_aggregates_to_empty_profile():
    prof = aggregate(decode(cpu_builder().build()), Category.CPU)
    assert prof.functions == ()
    assert prof.total_samples == 0


def _same_name_capture() -> Capture:
    # function ids 1 and 2 share one display name
    cap = Capture(
        sample_types=[ValueType(type="samples", unit="count")],
        functions={
            1: FunctionDef(id=1, name="main.work", filename="a.go"),
            2: FunctionDef(id=2, name="main.work", filename="b.go"),
            3: FunctionDef(id=3, name="main.main", filename="main.go"),
        },
        locations={
            1: Location(id=1, lines=[Line(function_id=1, line=10)]),
            2: Location(id=2, lines=[Line(function_id=2, line=20)]),
            3: Location(id=3, lines=[Line(function_id=3, line=5)]),
        },
    )
    cap.samples.append(Sample(location_ids=[1, 3], values=[5]))
    cap.samples.append(Sample(location_ids=[2, 3], values=[3]))
    return cap


def test_function_ids_sharing_a_name_merge_into_one_row():
    prof = aggregate(_same_name_capture(), Category.CPU)
    assert [(f.name, f.flat, f.cum) for f in prof.functions] == [("main.work", 8, 8), ("main.main", 0, 8)]
    work = prof.find("main.work")
    assert work.call_paths == (CallPath(stack=("main.work", "main.main"), weight=8),)

    out = diff(prof, prof, top_n=None)
    assert sorted(d.name for d in out) == ["main.main", "main.work"]
    assert all(d.flat_delta == 0 and d.cum_delta == 0 for d in out)


def test_same_name_in_one_stack_credits_cum_once():
    cap = _same_name_capture()
    cap.samples = [Sample(location_ids=[1, 2, 3], values=[4])]
    prof = aggregate(cap, Category.CPU)
    assert prof.find("main.work").cum == 4


def test_heap_with_three_values_keeps_inuse_objects():
    b = CaptureBuilder()
    b.sample_type("alloc_objects", "count").sample_type("alloc_space", "bytes").sample_type("inuse_objects", "count")
    prof = aggregate(decode(b.sample(["main.alloc"], [10, 80000, 3]).build()), Category.HEAP)
    assert prof.stats.inuse_objects == 3
    assert prof.stats.inuse_bytes == 0
    assert prof.total_samples == 80000
