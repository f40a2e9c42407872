"""Shared rendering steps for the CLI and the Hydra runner.

Functions
---------
run_show
    Load one capture and render it per a :class:`ReportRequest`.
run_diff
    Load two captures and render their diff per a :class:`DiffRequest`.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pprof_md.contracts.convert import diffs_to_dict, profile_to_dict, to_json
from pprof_md.contracts.models import DiffRequest, ReportRequest
from pprof_md.data.models import FunctionDiff, Profile
from pprof_md.profiling.export import render_diff_markdown, render_profile_markdown
from pprof_md.profiling.pipeline import compare_profiles, load_profile

logger = logging.getLogger(__name__)


def render_report(profile: Profile, req: ReportRequest) -> str:
    """Render ``profile`` in ``req.output_format``."""

    if req.output_format == "json":
        return to_json(profile_to_dict(profile, top_n=req.top_n))
    return render_profile_markdown(profile, top_n=req.top_n, include_prompt=req.include_prompt)


def render_diff(base: Profile, new: Profile, diffs: list[FunctionDiff], req: DiffRequest) -> str:
    """Render a diff in ``req.output_format``."""

    if req.output_format == "json":
        return to_json(diffs_to_dict(base, new, diffs))
    return render_diff_markdown(base, new, diffs)


def run_show(input_path: str | Path, req: ReportRequest) -> tuple[Profile, str]:
    """Build the profile of ``input_path`` and its rendered report."""

    profile = load_profile(input_path, req.category)
    logger.info(
        "Built %s profile | functions=%d total=%d",
        profile.category.value,
        len(profile.functions),
        profile.total_samples,
    )
    return profile, render_report(profile, req)


def run_diff(base_path: str | Path, new_path: str | Path, req: DiffRequest) -> tuple[Profile, Profile, list[FunctionDiff], str]:
    """Build both profiles, diff them and render the result.

    Raises
    ------
    CategoryMismatchError
        If the two captures resolve to different categories.
    """

    base = load_profile(base_path, req.base_category)
    new = load_profile(new_path, req.new_category)
    diffs = compare_profiles(base, new, top_n=req.top_n)
    logger.info(
        "Diffed %s profiles | base_total=%d new_total=%d entries=%d",
        base.category.value,
        base.total_samples,
        new.total_samples,
        len(diffs),
    )
    return base, new, diffs, render_diff(base, new, diffs, req)
