"""Request records (attrs-based) for report and diff runs.

These replace process-wide option state: the CLI and the Hydra runner both
build one record per invocation and pass it down explicitly.

Notes
-----
- ``output=None`` means standard output.
- Category fields accept a :class:`~pprof_md.data.models.Category` or its
  literal token; ``None`` lets the classifier decide.
"""

from __future__ import annotations

from typing import Literal, Optional

from attrs import define, field
from attrs.validators import in_, instance_of, optional

from pprof_md.data.models import Category

OutputFormat = Literal["markdown", "json"]
OUTPUT_FORMATS = ("markdown", "json")


def _non_negative(_: object, attr: object, value: int) -> None:
    """Reject negative counts.

    Raises
    ------
    ValueError
        If ``value`` is below zero.
    """

    if value < 0:
        name = getattr(attr, "name", "value")
        raise ValueError(f"{name} must be non-negative, got {value}")


def _optional_category(value: Category | str | None) -> Optional[Category]:
    if value is None or value == "":
        return None
    return Category.parse(value)


@define(kw_only=True)
class ReportRequest:
    """Options for rendering a single profile.

    Examples
    --------
    >>> ReportRequest(output=None, top_n=10, category="heap").category
    <Category.HEAP: 'heap'>
    """

    output: str | None = field(default=None, validator=[optional(instance_of(str))])
    top_n: int = field(default=20, validator=[instance_of(int), _non_negative])
    include_prompt: bool = field(default=True, validator=[instance_of(bool)])
    category: Category | None = field(default=None, converter=_optional_category)
    output_format: OutputFormat = field(default="markdown", validator=[in_(OUTPUT_FORMATS)])


@define(kw_only=True)
class DiffRequest:
    """Options for comparing a base and a new profile."""

    output: str | None = field(default=None, validator=[optional(instance_of(str))])
    top_n: int = field(default=20, validator=[instance_of(int), _non_negative])
    base_category: Category | None = field(default=None, converter=_optional_category)
    new_category: Category | None = field(default=None, converter=_optional_category)
    output_format: OutputFormat = field(default="markdown", validator=[in_(OUTPUT_FORMATS)])
