"""Domain-to-JSON conversion using `cattrs`.

Provides a shared converter that turns profiles and diffs into plain,
JSON-serializable dictionaries.
"""

from __future__ import annotations

import json
from typing import Iterable

from cattrs import Converter

from pprof_md.data.models import CallPath, Category, FunctionDiff, Profile

# Public converter instance; hooks are registered below.
converter = Converter()


def register_profile_hooks(conv: Converter) -> None:
    """Register hooks for categories and call paths.

    ``Category`` becomes its literal token and call-path stacks become lists
    so the output round-trips through :mod:`json` unchanged.
    """

    conv.register_unstructure_hook(Category, lambda c: c.value)
    conv.register_structure_hook(Category, lambda v, _: Category.parse(v))
    conv.register_unstructure_hook(CallPath, lambda cp: {"stack": list(cp.stack), "weight": cp.weight})


# Configure the shared converter on import so downstream callers can rely on it.
register_profile_hooks(converter)


def profile_to_dict(profile: Profile, top_n: int | None = None) -> dict:
    """Unstructure ``profile``; ``top_n`` limits the function list."""

    data = converter.unstructure(profile)
    functions = list(data["functions"])
    data["functions"] = functions if top_n is None else functions[:top_n]
    return data


def profile_from_dict(data: dict) -> Profile:
    """Rebuild a :class:`Profile` from :func:`profile_to_dict` output."""

    return converter.structure(data, Profile)


def diffs_to_dict(base: Profile, new: Profile, diffs: Iterable[FunctionDiff]) -> dict:
    """JSON view of a diff: category, totals and per-function entries."""

    return {
        "category": base.category.value,
        "base_total": base.total_samples,
        "new_total": new.total_samples,
        "total_delta": new.total_samples - base.total_samples,
        "functions": [converter.unstructure(d) for d in diffs],
    }


def to_json(data: dict) -> str:
    return json.dumps(data, indent=2) + "\n"
