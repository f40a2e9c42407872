"""Human-readable formatting of profile quantities.

Functions
---------
format_bytes
    Binary-prefixed byte size (``1.5 MiB``).
format_duration
    Nanoseconds as ``ms``/``s``/``m s``/``h m``.
format_number
    Large counts with ``K``/``M``/``G`` suffixes.
format_delta
    Signed count with ``K``/``M`` suffixes.
"""

from __future__ import annotations

_BYTE_PREFIXES = "KMGTPE"


def format_bytes(n: int) -> str:
    """Format a byte count using 1024-based units.

    Examples
    --------
    >>> format_bytes(512)
    '512 B'
    >>> format_bytes(80000)
    '78.1 KiB'
    """

    if n < 0:
        return "-" + format_bytes(-n)
    unit = 1024
    if n < unit:
        return f"{n} B"
    div, exp = unit, 0
    q = n // unit
    while q >= unit and exp < len(_BYTE_PREFIXES) - 1:
        div *= unit
        exp += 1
        q //= unit
    return f"{n / div:.1f} {_BYTE_PREFIXES[exp]}iB"


def format_duration(nanos: int) -> str:
    """Format nanoseconds, truncating to whole milliseconds.

    Examples
    --------
    >>> format_duration(1_500_000)
    '1 ms'
    >>> format_duration(125_000_000_000)
    '2 m 5 s'
    """

    if nanos < 0:
        return "-" + format_duration(-nanos)
    ms = nanos // 1_000_000
    if ms < 1000:
        return f"{ms} ms"
    s = ms // 1000
    if s < 60:
        return f"{s} s"
    m = s // 60
    if m < 60:
        return f"{m} m {s % 60} s"
    return f"{m // 60} h {m % 60} m"


def format_number(n: int) -> str:
    """Format a count with a ``K``/``M``/``G`` suffix above 999."""

    if n < 0:
        return "-" + format_number(-n)
    if n < 1000:
        return str(n)
    if n < 1_000_000:
        return f"{n / 1000:.1f}K"
    if n < 1_000_000_000:
        return f"{n / 1_000_000:.1f}M"
    return f"{n / 1_000_000_000:.1f}G"


def format_delta(delta: int) -> str:
    """Format a signed change (``+1.5K``, ``-20``, ``0``)."""

    if delta == 0:
        return "0"
    sign = "+" if delta > 0 else "-"
    mag = abs(delta)
    if mag < 1000:
        return f"{sign}{mag}"
    if mag < 1_000_000:
        return f"{sign}{mag / 1000:.1f}K"
    return f"{sign}{mag / 1_000_000:.1f}M"
