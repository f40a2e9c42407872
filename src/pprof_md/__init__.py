"""Convert pprof captures into ranked, AI-readable markdown reports.

The core lives in :mod:`pprof_md.profiling` (decode, classify, aggregate,
diff); domain values are in :mod:`pprof_md.data`.
"""

__version__ = "0.1.0"
