"""Decide which category a capture belongs to.

Rules are tried in order and the first match wins:

1. exact sample type names (with units for CPU),
2. units alone,
3. the declared period type,
4. two-valued samples with heap/mutex type names.

If none matches, :class:`~pprof_md.profiling.errors.UnknownCategoryError` is
raised with the declared sample types.
"""

from __future__ import annotations

import logging
from typing import Optional

from pprof_md.data.capture import Capture
from pprof_md.data.models import Category
from pprof_md.profiling.errors import UnknownCategoryError

logger = logging.getLogger(__name__)

_CPU_TYPES = frozenset({"cpu", "samples"})
_CPU_UNITS = frozenset({"nanoseconds", "seconds", "count"})
_HEAP_TYPES = frozenset({"alloc_objects", "inuse_objects", "alloc_space", "inuse_space"})
# The Go runtime writes "goroutine"; "goroutines" is accepted as well.
_GOROUTINE_TYPES = frozenset({"goroutines", "goroutine"})
_MUTEX_TYPES = frozenset({"contentions", "lock_duration"})

_TIME_UNITS = frozenset({"nanoseconds", "seconds", "milliseconds"})
_MUTEX_UNITS = frozenset({"lock_ns", "contentions"})


def _by_type_name(type_name: str, unit: str) -> Optional[Category]:
    if type_name in _CPU_TYPES:
        if unit in _CPU_UNITS:
            return Category.CPU
        return None
    if type_name in _HEAP_TYPES:
        return Category.HEAP
    if type_name in _GOROUTINE_TYPES:
        return Category.GOROUTINE
    if type_name in _MUTEX_TYPES:
        return Category.MUTEX
    return None


def _by_unit(type_name: str, unit: str) -> Optional[Category]:
    if unit in _TIME_UNITS:
        return Category.CPU if type_name in _CPU_TYPES else None
    if unit == "bytes":
        return Category.HEAP
    if unit in _MUTEX_UNITS:
        return Category.MUTEX
    return None


def _by_value_count(capture: Capture) -> Optional[Category]:
    if not capture.samples or any(len(s.values) != 2 for s in capture.samples):
        return None
    for vt in capture.sample_types:
        if vt.type in ("alloc_objects", "inuse_objects"):
            return Category.HEAP
        if vt.type == "contentions":
            return Category.MUTEX
    return None


def classify(capture: Capture) -> Category:
    """Return the category of ``capture``.

    Parameters
    ----------
    capture : Capture
        Decoded capture.

    Returns
    -------
    Category
        The first category a rule matches.

    Raises
    ------
    UnknownCategoryError
        If no rule matches; carries the declared ``(type, unit)`` pairs.
    """

    for vt in capture.sample_types:
        found = _by_type_name(vt.type, vt.unit) or _by_unit(vt.type, vt.unit)
        if found is not None:
            logger.debug("Classified capture as %s from sample type %s/%s", found, vt.type, vt.unit)
            return found

    if capture.period_type_name in _CPU_TYPES:
        logger.debug("Classified capture as cpu from period type %s", capture.period_type_name)
        return Category.CPU

    found = _by_value_count(capture)
    if found is not None:
        logger.debug("Classified capture as %s from two-valued samples", found)
        return found

    raise UnknownCategoryError([vt.as_tuple() for vt in capture.sample_types])
