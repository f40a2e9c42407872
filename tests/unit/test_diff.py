import pytest

from pprof_md.data.models import Function, Profile
from pprof_md.profiling.diff import diff, total_delta
from pprof_md.profiling.errors import CategoryMismatchError


def _f(name: str, flat: int, cum: int) -> Function:
    return Function(name=name, file="main.go", line=1, flat=flat, cum=cum)


def _p(category: str, *fns: Function) -> Profile:
    return Profile(category=category, total_samples=sum(f.flat for f in fns), functions=fns)


def test_self_diff_is_all_zero():
    prof = _p("cpu", _f("a", 10, 20), _f("b", 5, 5))
    out = diff(prof, prof)
    assert {d.name for d in out} == {"a", "b"}
    for d in out:
        assert d.flat_delta == 0 and d.cum_delta == 0
        assert d.flat_delta_pct == 0.0 and d.cum_delta_pct == 0.0
        assert not (d.is_new or d.is_removed or d.is_improved or d.is_regressed)


def test_category_mismatch_raises():
    with pytest.raises(CategoryMismatchError) as ei:
        diff(_p("cpu"), _p("heap"))
    assert "base is cpu, new is heap" in str(ei.value)


def test_removed_and_new_functions_ordering():
    base = _p("cpu", _f("A", 100, 100))
    new = _p("cpu", _f("B", 50, 50))
    removed, added = diff(base, new)

    assert removed.name == "A"
    assert removed.is_removed and removed.is_improved and not removed.is_regressed
    assert removed.cum_delta == -100
    assert removed.flat_delta_pct == pytest.approx(-100.0)

    assert added.name == "B"
    assert added.is_new and added.is_regressed and not added.is_improved
    assert added.cum_delta == 50
    assert added.cum_delta_pct == pytest.approx(100.0)
    assert (added.base_flat, added.new_flat) == (0, 50)


def test_changed_function_percentages_and_mixed_flags():
    base = _p("heap", _f("f", 40, 100))
    new = _p("heap", _f("f", 20, 150))
    (d,) = diff(base, new)
    assert d.flat_delta == -20
    assert d.flat_delta_pct == pytest.approx(-50.0)
    assert d.cum_delta == 50
    assert d.cum_delta_pct == pytest.approx(50.0)
    assert d.is_improved and d.is_regressed


def test_growth_from_zero_is_one_hundred_percent():
    base = _p("cpu", _f("f", 0, 10))
    new = _p("cpu", _f("f", 5, 10))
    (d,) = diff(base, new)
    assert d.flat_delta_pct == pytest.approx(100.0)
    assert d.cum_delta_pct == 0.0


def test_ties_sorted_by_name_and_truncated():
    base = _p("cpu", _f("c", 1, 1), _f("b", 1, 1), _f("a", 1, 1))
    new = _p("cpu")
    assert [d.name for d in diff(base, new, top_n=2)] == ["a", "b"]
    assert len(diff(base, new, top_n=None)) == 3
    assert diff(base, new, top_n=0) == []


def test_negative_top_n_rejected():
    prof = _p("cpu", _f("a", 1, 1))
    with pytest.raises(ValueError):
        diff(prof, prof, top_n=-1)


def test_total_delta():
    assert total_delta(_p("cpu", _f("a", 10, 10)), _p("cpu", _f("a", 25, 25))) == 15
