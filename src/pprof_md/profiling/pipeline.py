"""Pipeline entry points: bytes or files in, ``Profile``/diffs out.

Functions
---------
build_profile
    Decode, classify (unless overridden) and aggregate capture bytes.
load_profile
    Read a capture file once and build its profile.
compare_profiles
    Diff two profiles of the same category.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pprof_md.data.models import Category, FunctionDiff, Profile
from pprof_md.profiling.aggregate import aggregate
from pprof_md.profiling.classify import classify
from pprof_md.profiling.decode import decode
from pprof_md.profiling.diff import DEFAULT_TOP_N, diff

logger = logging.getLogger(__name__)


def build_profile(data: bytes, category: Category | str | None = None) -> Profile:
    """Turn capture bytes into a ranked profile.

    Parameters
    ----------
    data : bytes
        Capture bytes (gzip-wrapped or raw).
    category : Category, str or None, optional
        Explicit category; when given the classifier is bypassed.

    Raises
    ------
    DecodeError
        If the bytes are not a readable capture.
    UnknownCategoryError
        If no category is given and none can be inferred.
    ValueError
        If ``category`` is not a valid token.
    """

    capture = decode(data)
    if category is None:
        resolved = classify(capture)
    else:
        resolved = Category.parse(category)
        logger.debug("Using explicit profile type %s", resolved)
    return aggregate(capture, resolved)


def load_profile(path: str | Path, category: Category | str | None = None) -> Profile:
    """Read ``path`` and build its profile.

    Raises
    ------
    FileNotFoundError
        If ``path`` does not exist.
    """

    p = Path(path)
    if not p.is_file():
        raise FileNotFoundError(f"file not found: {p}")
    data = p.read_bytes()
    logger.info("Loaded capture %s (%d bytes)", str(p), len(data))
    return build_profile(data, category)


def compare_profiles(base: Profile, new: Profile, top_n: int | None = DEFAULT_TOP_N) -> list[FunctionDiff]:
    """Return the ranked per-function diff of ``base`` and ``new``."""

    return diff(base, new, top_n=top_n)
