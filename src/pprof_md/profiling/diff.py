"""Per-function deltas between two profiles of the same category.

Functions
---------
diff
    Ranked ``FunctionDiff`` list for a base and a new profile.
total_delta
    Difference of the two profiles' category totals.
"""

from __future__ import annotations

import logging

from pprof_md.data.models import Function, FunctionDiff, Profile
from pprof_md.profiling.errors import CategoryMismatchError

logger = logging.getLogger(__name__)

DEFAULT_TOP_N = 20


def _delta_pct(delta: int, base: int, new: int) -> float:
    """Relative change in percent; 100.0 when something appeared from zero."""

    if base != 0:
        return float(delta) / float(base) * 100.0
    if new != 0:
        return 100.0
    return 0.0


def _function_diff(name: str, base: Function | None, new: Function | None) -> FunctionDiff:
    if base is None:
        if new is None:
            raise ValueError(f"function {name!r} is missing from both profiles")
        return FunctionDiff(
            name=name,
            file=new.file,
            line=new.line,
            new_flat=new.flat,
            new_cum=new.cum,
            flat_delta=new.flat,
            flat_delta_pct=_delta_pct(new.flat, 0, new.flat),
            cum_delta=new.cum,
            cum_delta_pct=_delta_pct(new.cum, 0, new.cum),
            is_new=True,
            is_regressed=new.flat > 0 or new.cum > 0,
        )
    if new is None:
        return FunctionDiff(
            name=name,
            file=base.file,
            line=base.line,
            base_flat=base.flat,
            base_cum=base.cum,
            flat_delta=-base.flat,
            flat_delta_pct=_delta_pct(-base.flat, base.flat, 0),
            cum_delta=-base.cum,
            cum_delta_pct=_delta_pct(-base.cum, base.cum, 0),
            is_removed=True,
            is_improved=True,
        )
    flat_delta = new.flat - base.flat
    cum_delta = new.cum - base.cum
    return FunctionDiff(
        name=name,
        file=base.file,
        line=base.line,
        base_flat=base.flat,
        base_cum=base.cum,
        new_flat=new.flat,
        new_cum=new.cum,
        flat_delta=flat_delta,
        flat_delta_pct=_delta_pct(flat_delta, base.flat, new.flat),
        cum_delta=cum_delta,
        cum_delta_pct=_delta_pct(cum_delta, base.cum, new.cum),
        is_improved=flat_delta < 0 or cum_delta < 0,
        is_regressed=flat_delta > 0 or cum_delta > 0,
    )


def diff(base: Profile, new: Profile, top_n: int | None = DEFAULT_TOP_N) -> list[FunctionDiff]:
    """Compare two profiles function by function.

    Parameters
    ----------
    base, new : Profile
        Profiles of the same category.
    top_n : int or None, default=20
        Number of entries to keep after ranking; ``None`` keeps all.

    Returns
    -------
    list[FunctionDiff]
        One entry per function name present in either profile, sorted by
        absolute ``cum_delta`` descending then name, truncated to ``top_n``.

    Raises
    ------
    CategoryMismatchError
        If the profiles have different categories.
    ValueError
        If ``top_n`` is negative.
    """

    if base.category != new.category:
        raise CategoryMismatchError(str(base.category), str(new.category))
    if top_n is not None and top_n < 0:
        raise ValueError(f"top_n must be non-negative, got {top_n!r}")

    base_by_name = {fn.name: fn for fn in base.functions}
    new_by_name = {fn.name: fn for fn in new.functions}
    names = set(base_by_name) | set(new_by_name)

    diffs = [_function_diff(name, base_by_name.get(name), new_by_name.get(name)) for name in names]
    diffs.sort(key=lambda d: (-abs(d.cum_delta), d.name))
    logger.debug(
        "Diffed %s profiles | base_functions=%d new_functions=%d union=%d",
        base.category.value,
        len(base_by_name),
        len(new_by_name),
        len(diffs),
    )
    if top_n is not None:
        diffs = diffs[:top_n]
    return diffs


def total_delta(base: Profile, new: Profile) -> int:
    """Return ``new.total_samples - base.total_samples``."""

    return new.total_samples - base.total_samples
