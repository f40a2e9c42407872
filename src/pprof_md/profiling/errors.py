"""Exceptions raised by the profiling pipeline.

Every error carries the context needed to diagnose it (declared sample
types, category names) so callers can report it without re-running with
verbose logging.
"""

from __future__ import annotations

from typing import Sequence


class ProfileError(Exception):
    """Base class for pipeline errors."""


class DecodeError(ProfileError):
    """Raised when the byte stream cannot be read as a capture at all."""


class UnknownCategoryError(ProfileError):
    """Raised when no classification rule matches a capture.

    Attributes
    ----------
    sample_types : list[tuple[str, str]]
        Declared (type, unit) pairs of the capture.
    """

    def __init__(self, sample_types: Sequence[tuple[str, str]]) -> None:
        self.sample_types = list(sample_types)
        if self.sample_types:
            declared = ", ".join(f"{t}/{u}" for t, u in self.sample_types)
        else:
            declared = "<none>"
        super().__init__(f"unknown profile type: sample types: [{declared}]")


class MalformedSampleError(ProfileError):
    """Raised when a sample's value vector is too short for its category.

    The aggregator recovers from this locally by skipping the sample.
    """

    def __init__(self, index: int, category: str, values: Sequence[int], required: int) -> None:
        self.index = index
        self.category = category
        self.values = list(values)
        self.required = required
        super().__init__(
            f"sample #{index} carries {len(self.values)} value(s); "
            f"{category} profiles need at least {required}"
        )


class CategoryMismatchError(ProfileError):
    """Raised when diffing two profiles of different categories."""

    def __init__(self, base: str, new: str) -> None:
        self.base = base
        self.new = new
        super().__init__(f"profile types do not match: base is {base}, new is {new}")
