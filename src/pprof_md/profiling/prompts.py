"""Analysis guidance appended to single-profile reports.

Each category gets a short checklist a reader (human or assistant) can work
through against the tables above it. Unknown categories fall back to a
generic request.
"""

from __future__ import annotations

from pprof_md.data.models import Category

_CPU = """\
Please review the CPU profile above and help identify performance problems:

1. Which functions consume the most CPU time (flat) and why might they be expensive?
2. Which call paths lead to the heaviest functions, and are any of them avoidable?
3. Is time spent in runtime, syscalls or GC rather than application code?
4. Suggest concrete optimizations ordered by expected impact.
"""

_HEAP = """\
Please review the heap profile above and help identify memory problems:

1. Which functions allocate the most bytes, and are those allocations necessary?
2. Are there hot paths that allocate many small objects which could be pooled or reused?
3. Do the call paths suggest buffers or slices that could be pre-sized?
4. Suggest changes that reduce allocation volume and GC pressure.
"""

_GOROUTINE = """\
Please review the goroutine profile above and help identify concurrency problems:

1. Where are most goroutines parked, and is that count expected for this workload?
2. Do the stacks suggest leaks, such as goroutines blocked forever on channels or locks?
3. Are goroutines created per request without an upper bound?
4. Suggest fixes for any leak or unbounded growth you find.
"""

_MUTEX = """\
Please review the mutex profile above and help identify lock contention:

1. Which locks are waited on the longest, and from which call paths?
2. Could the critical sections be shortened or the lock split into finer-grained locks?
3. Would lock-free structures, sharding or read/write locks help here?
4. Suggest changes ordered by the contention time they would remove.
"""

_GENERIC = """\
Please review the profile above, point out the most expensive functions and
call paths, and suggest concrete improvements.
"""

_PROMPTS: dict[Category, str] = {
    Category.CPU: _CPU,
    Category.HEAP: _HEAP,
    Category.GOROUTINE: _GOROUTINE,
    Category.MUTEX: _MUTEX,
}


def analysis_prompt(category: Category | str | None) -> str:
    """Return the guidance text for ``category`` (generic when unknown)."""

    if category is None:
        return _GENERIC
    try:
        return _PROMPTS[Category.parse(category)]
    except ValueError:
        return _GENERIC
