"""Command-line entry point: ``pprof-md show`` and ``pprof-md diff``.

Arguments are validated into :class:`ReportRequest` / :class:`DiffRequest`
records and dispatched to :mod:`pprof_md.runners.report_tools`.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from pprof_md.contracts.models import DiffRequest, ReportRequest
from pprof_md.profiling.errors import ProfileError
from pprof_md.profiling.export import write_text_output
from pprof_md.runners.report_tools import run_diff, run_show


def _parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="pprof-md",
        description="Convert pprof captures (cpu, heap, goroutine, mutex) into Markdown reports.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging on stderr.")
    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", aliases=["analyze"], help="Render one capture as a report.")
    show.add_argument("input", type=str, help="Path to a pprof capture (gzip or raw).")
    show.add_argument("-o", "--output", type=str, default=None, help="Output file (default: stdout).")
    show.add_argument("-n", "--top", type=int, default=20, help="Number of top functions to display.")
    show.add_argument("--no-ai-prompt", action="store_true", help="Omit the analysis request section.")
    show.add_argument("-t", "--type", dest="category", type=str, default=None, help="Profile type; auto-detected when omitted.")
    show.add_argument("--format", dest="output_format", choices=["markdown", "json"], default="markdown")

    diff = sub.add_parser("diff", help="Compare a base and a new capture.")
    diff.add_argument("base", type=str, help="Base capture.")
    diff.add_argument("new", type=str, help="New capture.")
    diff.add_argument("-o", "--output", type=str, default=None, help="Output file (default: stdout).")
    diff.add_argument("-n", "--top", type=int, default=20, help="Number of top changed functions to display.")
    diff.add_argument("-b", "--base-type", type=str, default=None, help="Base profile type; auto-detected when omitted.")
    diff.add_argument("-t", "--new-type", type=str, default=None, help="New profile type; auto-detected when omitted.")
    diff.add_argument("--format", dest="output_format", choices=["markdown", "json"], default="markdown")
    return parser.parse_args(argv)


def _show(args: argparse.Namespace) -> None:
    req = ReportRequest(
        output=args.output,
        top_n=int(args.top),
        include_prompt=not bool(args.no_ai_prompt),
        category=args.category,
        output_format=args.output_format,
    )
    _, text = run_show(args.input, req)
    write_text_output(text, req.output)
    if req.output:
        print(f"Report written to: {req.output}", file=sys.stderr)


def _diff(args: argparse.Namespace) -> None:
    req = DiffRequest(
        output=args.output,
        top_n=int(args.top),
        base_category=args.base_type,
        new_category=args.new_type,
        output_format=args.output_format,
    )
    *_, text = run_diff(args.base, args.new, req)
    write_text_output(text, req.output)
    if req.output:
        print(f"Diff report written to: {req.output}", file=sys.stderr)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    try:
        if args.command == "diff":
            _diff(args)
        else:
            _show(args)
    except (ProfileError, ValueError, OSError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
