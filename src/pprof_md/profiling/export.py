"""Markdown rendering of profiles and profile diffs.

Functions
---------
render_profile_markdown
    Markdown report for one profile (summary, ranked table, call paths).
render_diff_markdown
    Markdown report comparing two profiles.
write_profile_markdown
    Write a profile report to a ``.md`` file via mdutils.
write_diff_markdown
    Write a diff report to a ``.md`` file via mdutils.
write_text_output
    Write rendered text to a file or to stdout.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable, Iterable

from mdutils.mdutils import MdUtils  # type: ignore[import-untyped]

from pprof_md.data.models import Category, Function, FunctionDiff, Profile
from pprof_md.profiling.diff import total_delta
from pprof_md.profiling.prompts import analysis_prompt
from pprof_md.utils.formatting import format_bytes, format_delta, format_duration, format_number

# Column title and value formatter for the primary metric of each category.
_METRICS: dict[Category, tuple[str, Callable[[int], str]]] = {
    Category.CPU: ("CPU Time", format_duration),
    Category.HEAP: ("Allocated Bytes", format_bytes),
    Category.GOROUTINE: ("Goroutines", str),
    Category.MUTEX: ("Contention Time", format_duration),
}

_MAX_CALL_PATHS = 5


def _metric(category: Category) -> tuple[str, Callable[[int], str]]:
    return _METRICS.get(category, ("Value", str))


def _summary_items(profile: Profile) -> list[str]:
    st = profile.stats
    cat = profile.category
    if cat is Category.CPU:
        items = [
            f"**Profile Duration:** {format_duration(st.duration_nanos)}",
            f"**Total CPU Time:** {format_duration(profile.total_samples)}",
            f"**Sample Rate:** {st.sample_rate} Hz",
        ]
    elif cat is Category.HEAP:
        items = [
            f"**Allocated Objects:** {format_number(st.alloc_objects)}",
            f"**Allocated Bytes:** {format_bytes(st.alloc_bytes)}",
            f"**In-Use Objects:** {format_number(st.inuse_objects)}",
            f"**In-Use Bytes:** {format_bytes(st.inuse_bytes)}",
        ]
    elif cat is Category.GOROUTINE:
        items = [f"**Total Goroutines:** {format_number(st.total_goroutines)}"]
    else:
        items = [
            f"**Total Contention Time:** {format_duration(st.total_contention_time)}",
            f"**Total Waits:** {format_number(st.total_waits)}",
        ]
    items.append(f"**Samples:** {st.sample_count}")
    if st.skipped_samples:
        items.append(f"**Skipped Samples:** {st.skipped_samples}")
    return items


def _function_table(md: MdUtils, functions: Iterable[Function], category: Category) -> int:
    title, fmt = _metric(category)
    header = ["Rank", "Function", "File", title, "% of Total", "Sum %", "Cumulative", "Cumulative %"]
    table_data: list[str] = header.copy()
    n = 0
    for n, fn in enumerate(functions, start=1):
        location = f"{fn.file}:{fn.line}" if fn.file else "-"
        table_data.extend(
            [
                str(n),
                f"`{fn.name}`",
                location,
                fmt(fn.flat),
                f"{fn.flat_pct:.2f}%",
                f"{fn.sum_pct:.2f}%",
                fmt(fn.cum),
                f"{fn.cum_pct:.2f}%",
            ]
        )
    md.new_table(columns=len(header), rows=n + 1, text=table_data, text_align="center")
    return n


def _call_path_sections(md: MdUtils, functions: Iterable[Function], category: Category) -> None:
    _, fmt = _metric(category)
    for fn in functions:
        if not fn.call_paths:
            continue
        md.new_header(level=3, title=fn.name, add_table_of_contents="n")
        for i, path in enumerate(fn.call_paths[:_MAX_CALL_PATHS], start=1):
            md.new_paragraph(f"**Call Path #{i}** (weight: {fmt(path.weight)})")
            md.new_line("```text")
            for depth, frame in enumerate(path.stack):
                md.new_line(f"-> {frame}" if depth == 0 else f"   {frame}")
            md.new_line("```")
        hidden = len(fn.call_paths) - _MAX_CALL_PATHS
        if hidden > 0:
            md.new_paragraph(f"_{hidden} more call path(s) not shown._")


def _build_profile_md(file_name: str, profile: Profile, top_n: int | None, include_prompt: bool) -> MdUtils:
    shown = profile.top(top_n)
    md = MdUtils(file_name=file_name)
    md.new_header(level=1, title=f"{profile.category.value} Profile Analysis", add_table_of_contents="n")
    md.new_header(level=2, title="Summary Statistics", add_table_of_contents="n")
    md.new_list(items=_summary_items(profile))
    md.new_header(level=2, title=f"Top {profile.category.value} Functions", add_table_of_contents="n")
    if shown:
        md.new_paragraph(f"Showing {len(shown)} of {len(profile.functions)} functions.")
        _function_table(md, shown, profile.category)
        _call_path_sections(md, shown, profile.category)
    else:
        md.new_paragraph("No functions were attributed any samples.")
    if include_prompt:
        md.new_paragraph("---")
        md.new_header(level=2, title="AI Analysis Request", add_table_of_contents="n")
        md.new_paragraph(analysis_prompt(profile.category))
    return md


def render_profile_markdown(profile: Profile, top_n: int | None = 20, include_prompt: bool = True) -> str:
    """Render ``profile`` as a Markdown report.

    Parameters
    ----------
    profile : Profile
        Aggregated profile.
    top_n : int or None, default=20
        Number of ranked functions to show; ``None`` shows all.
    include_prompt : bool, default=True
        Append the category's analysis guidance section.

    Returns
    -------
    str
        Markdown text.
    """

    return _build_profile_md("report", profile, top_n, include_prompt).get_md_text()


def _diff_summary_rows(base: Profile, new: Profile) -> list[list[str]]:
    b, n = base.stats, new.stats

    def _row(label: str, fmt: Callable[[int], str], old: int, cur: int, delta_fmt: Callable[[int], str] = format_delta) -> list[str]:
        return [label, fmt(old), fmt(cur), delta_fmt(cur - old)]

    cat = base.category
    if cat is Category.CPU:
        return [
            _row("Total CPU Time", format_duration, base.total_samples, new.total_samples, format_duration),
            [
                "Duration",
                format_duration(b.duration_nanos),
                format_duration(n.duration_nanos),
                "-",
            ],
        ]
    if cat is Category.HEAP:
        return [
            _row("Allocated Bytes", format_bytes, b.alloc_bytes, n.alloc_bytes),
            _row("Allocated Objects", format_number, b.alloc_objects, n.alloc_objects),
            _row("In-Use Bytes", format_bytes, b.inuse_bytes, n.inuse_bytes),
            _row("In-Use Objects", format_number, b.inuse_objects, n.inuse_objects),
        ]
    if cat is Category.GOROUTINE:
        return [_row("Total Goroutines", format_number, b.total_goroutines, n.total_goroutines)]
    return [
        _row("Contention Time", format_duration, b.total_contention_time, n.total_contention_time, format_duration),
        _row("Total Waits", format_number, b.total_waits, n.total_waits),
    ]


def _diff_status(d: FunctionDiff) -> str:
    if d.is_new:
        return "new"
    if d.is_removed:
        return "removed"
    if d.is_improved and d.is_regressed:
        return "mixed"
    if d.is_regressed:
        return "regressed"
    if d.is_improved:
        return "improved"
    return "unchanged"


def _build_diff_md(file_name: str, base: Profile, new: Profile, diffs: list[FunctionDiff]) -> MdUtils:
    cat = base.category.value
    md = MdUtils(file_name=file_name)
    md.new_header(level=1, title=f"{cat} Profile Diff: Base vs New", add_table_of_contents="n")
    md.new_header(level=2, title="Summary", add_table_of_contents="n")

    rows = _diff_summary_rows(base, new)
    summary: list[str] = ["Metric", "Base", "New", "Delta"]
    for r in rows:
        summary.extend(r)
    md.new_table(columns=4, rows=len(rows) + 1, text=summary, text_align="center")
    md.new_paragraph(f"Total change: {format_delta(total_delta(base, new))}")

    md.new_header(level=2, title="Top Changed Functions", add_table_of_contents="n")
    if not diffs:
        md.new_paragraph("No functions to compare.")
        return md
    _, fmt = _metric(base.category)
    header = ["Rank", "Function", "Base", "New", "Flat Δ", "Flat Δ%", "Cum Δ", "Cum Δ%", "Status"]
    table_data: list[str] = header.copy()
    for i, d in enumerate(diffs, start=1):
        table_data.extend(
            [
                str(i),
                f"`{d.name}`",
                "-" if d.is_new else fmt(d.base_cum),
                "-" if d.is_removed else fmt(d.new_cum),
                format_delta(d.flat_delta),
                f"{d.flat_delta_pct:+.1f}%",
                format_delta(d.cum_delta),
                f"{d.cum_delta_pct:+.1f}%",
                _diff_status(d),
            ]
        )
    md.new_table(columns=len(header), rows=len(diffs) + 1, text=table_data, text_align="center")
    return md


def render_diff_markdown(base: Profile, new: Profile, diffs: list[FunctionDiff]) -> str:
    """Render a diff report for ``base`` vs ``new``.

    ``diffs`` is the (already ranked and truncated) output of
    :func:`pprof_md.profiling.diff.diff`.
    """

    return _build_diff_md("diff", base, new, diffs).get_md_text()


def _file_base(path: str | Path) -> str:
    # mdutils appends ".md" itself
    s = str(path)
    return s[:-3] if s.endswith(".md") else s


def write_profile_markdown(profile: Profile, path: str | Path, top_n: int | None = 20, include_prompt: bool = True) -> None:
    """Write the profile report to ``path`` (``.md`` is appended when missing)."""

    _build_profile_md(_file_base(path), profile, top_n, include_prompt).create_md_file()


def write_diff_markdown(base: Profile, new: Profile, diffs: list[FunctionDiff], path: str | Path) -> None:
    """Write the diff report to ``path`` (``.md`` is appended when missing)."""

    _build_diff_md(_file_base(path), base, new, diffs).create_md_file()


def write_text_output(text: str, output: str | Path | None) -> None:
    """Write ``text`` to ``output`` or to stdout when ``output`` is None."""

    if output is None:
        sys.stdout.write(text)
        if not text.endswith("\n"):
            sys.stdout.write("\n")
        return
    p = Path(output)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(text, encoding="utf-8")
